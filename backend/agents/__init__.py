"""
Persona system — import all personas to trigger auto-registration.

Each persona decorated with @register_agent_class registers itself in
BaseAgent._registry on import. Importing this package ensures every
persona is available for BaseAgent.create_all().
"""

from agents.nexy import NexyAgent  # noqa: F401
from agents.dev import DevAgent  # noqa: F401
from agents.designer import DesignerAgent  # noqa: F401
from agents.teacher import TeacherAgent  # noqa: F401
from agents.debugger import DebuggerAgent  # noqa: F401
