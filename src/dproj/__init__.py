"""
dproj - Docker projects

Project scoping for Docker resources and scriptable project tasks,
declared in a dockerproject.lua file at the project root.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from dproj.core.config.models import DprojConfig
from dproj.core.project.models import Project, Task, TaskShape

__all__ = ["DprojConfig", "Project", "Task", "TaskShape", "__version__"]
