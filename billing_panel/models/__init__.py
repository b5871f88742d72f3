from .client import Client
from .notification import Notification
