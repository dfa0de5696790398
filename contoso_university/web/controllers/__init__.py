"""
MVC controllers.

Controllers are plain classes whose @action coroutines are reached through the
conventional route ``{controller=Home}/{action=Index}/{id?}``.
"""

from .base import Controller, ControllerRegistry, action, http_post  # noqa: F401
from .home import HomeController  # noqa: F401
from .students import StudentsController  # noqa: F401
