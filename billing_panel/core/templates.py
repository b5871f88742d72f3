import os

from fastapi.templating import Jinja2Templates

# billing_panel/core/ -> billing_panel/ -> {project_root}/templates
current_dir = os.path.dirname(os.path.abspath(__file__))
templates_dir = os.path.join(current_dir, "..", "..", "templates")
templates_dir = os.path.normpath(templates_dir)

templates = Jinja2Templates(directory=templates_dir)
