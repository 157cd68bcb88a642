"""
Tool manifests — the tools each persona advertises to the model.

Property names double as handler keyword arguments.
"""

from inference.base import ToolSpec


def _schema(properties: dict, required: tuple = ()) -> dict:
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = list(required)
    return schema


_STR = {"type": "string"}
_BOOL = {"type": "boolean"}
_NUM = {"type": "number"}
_STR_LIST = {"type": "array", "items": {"type": "string"}}


def _described(base: dict, description: str, **extra) -> dict:
    return {**base, "description": description, **extra}


# ── Nexy (router / generalist) ──

NEXY_TOOLS = (
    ToolSpec(
        "route_task",
        "Route a task to the appropriate specialized agent",
        _schema({
            "task": _described(_STR, "The task description"),
            "suggested_agent": _described(_STR, "Suggested agent ID (dev, designer, teacher, debugger)"),
            "context": {"type": "object", "description": "Additional context for the task"},
        }, ("task", "suggested_agent")),
    ),
    ToolSpec(
        "get_agent_status",
        "Get the current status and capabilities of all agents",
        _schema({"include_memory": _described(_BOOL, "Include memory statistics")}),
    ),
    ToolSpec(
        "coordinate_agents",
        "Coordinate multiple agents to work on a complex task",
        _schema({
            "agents": _described(_STR_LIST, "List of agent IDs to coordinate"),
            "task_plan": _described(_STR, "High-level task plan"),
            "parallel": _described(_BOOL, "Whether agents can work in parallel"),
        }, ("agents", "task_plan")),
    ),
    ToolSpec(
        "summarize_progress",
        "Summarize the progress of ongoing tasks across all agents",
        _schema({
            "conversation_id": _described(_STR, "Conversation ID to summarize"),
            "include_details": _described(_BOOL, "Include detailed task breakdown"),
        }, ("conversation_id",)),
    ),
)

# ── Dev (code) ──

DEV_TOOLS = (
    ToolSpec(
        "execute_code",
        "Execute code in a subprocess with a timeout",
        _schema({
            "language": {"type": "string", "enum": ["python", "bash"]},
            "code": _described(_STR, "Code to execute"),
            "timeout": _described(_NUM, "Execution timeout in seconds"),
        }, ("language", "code")),
    ),
    ToolSpec(
        "syntax_check",
        "Check code for syntax errors",
        _schema({
            "language": {"type": "string", "enum": ["python", "javascript", "typescript"]},
            "code": _described(_STR, "Code to check"),
            "strict": _described(_BOOL, "Report style warnings as well"),
        }, ("language", "code")),
    ),
    ToolSpec(
        "analyze_dependencies",
        "Analyze a project's declared dependencies and flag unpinned ones",
        _schema({
            "manifest_path": _described(
                _STR, "Path to package.json, requirements.txt or pyproject.toml inside the workspace"
            ),
            "check_unpinned": _described(_BOOL, "Flag dependencies without a version pin"),
        }, ("manifest_path",)),
    ),
    ToolSpec(
        "generate_tests",
        "Generate unit test skeletons for the functions in a code snippet",
        _schema({
            "code": _described(_STR, "Code to generate tests for"),
            "framework": {"type": "string", "enum": ["pytest", "unittest", "jest"],
                          "description": "Test framework"},
            "module": _described(_STR, "Module name to import the functions from"),
        }, ("code", "framework")),
    ),
    ToolSpec(
        "refactor_code",
        "Suggest code refactoring improvements",
        _schema({
            "code": _described(_STR, "Code to refactor"),
            "goals": _described(_STR_LIST, 'Refactoring goals (e.g. "improve readability")'),
        }, ("code",)),
    ),
)

# ── Designer (visual) ──

DESIGNER_TOOLS = (
    ToolSpec(
        "generate_component",
        "Generate a React component with styling",
        _schema({
            "component_name": _described(_STR, "Name of the component"),
            "description": _described(_STR, "What the component should do"),
            "framework": {"type": "string", "enum": ["react", "nextjs"], "default": "react"},
            "styling": {"type": "string", "enum": ["css", "tailwind", "styled-components", "css-modules"]},
            "props": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"name": _STR, "type": _STR, "required": _BOOL},
                },
            },
        }, ("component_name", "description", "styling")),
    ),
    ToolSpec(
        "suggest_colors",
        "Suggest color palettes based on theme or mood",
        _schema({
            "theme": _described(_STR, "Theme or mood (professional, playful, dark, nature)"),
            "base_color": _described(_STR, "Optional base color in hex format"),
            "count": _described(_NUM, "Number of variations to generate", default=5),
        }, ("theme",)),
    ),
    ToolSpec(
        "check_accessibility",
        "Check HTML or JSX for accessibility issues",
        _schema({
            "html": _described(_STR, "HTML or JSX code to check"),
            "level": {"type": "string", "enum": ["A", "AA", "AAA"], "default": "AA"},
        }, ("html",)),
    ),
    ToolSpec(
        "optimize_layout",
        "Suggest layout optimizations for responsive design",
        _schema({
            "current_layout": _described(_STR, "Current CSS or component code"),
            "target_devices": {
                "type": "array",
                "items": {"type": "string", "enum": ["mobile", "tablet", "desktop"]},
            },
            "framework": {"type": "string", "enum": ["flexbox", "grid"]},
        }, ("current_layout",)),
    ),
    ToolSpec(
        "generate_icons",
        "Suggest or generate SVG icons",
        _schema({
            "icon_name": _described(_STR, "Name or description of the icon"),
            "style": {"type": "string", "enum": ["outline", "filled"], "default": "outline"},
            "size": {"type": "number", "default": 24},
        }, ("icon_name",)),
    ),
)

# ── Teacher (pedagogical) ──

TEACHER_TOOLS = (
    ToolSpec(
        "create_tutorial",
        "Create a tutorial outline on a topic",
        _schema({
            "topic": _described(_STR, "Topic to create the tutorial for"),
            "level": {"type": "string", "enum": ["beginner", "intermediate", "advanced"]},
            "format": {"type": "string", "enum": ["step-by-step", "video-script", "interactive", "documentation"]},
            "duration": _described(_NUM, "Estimated duration in minutes"),
        }, ("topic", "level")),
    ),
    ToolSpec(
        "generate_quiz",
        "Generate a quiz to test understanding",
        _schema({
            "topic": _described(_STR, "Topic for the quiz"),
            "question_count": _described(_NUM, "Number of questions"),
            "difficulty": {"type": "string", "enum": ["easy", "medium", "hard"]},
            "question_types": {
                "type": "array",
                "items": {"type": "string", "enum": ["multiple-choice", "true-false", "short-answer"]},
            },
        }, ("topic", "question_count")),
    ),
    ToolSpec(
        "track_progress",
        "Track and analyze learning progress for the current user",
        _schema({
            "topic": _described(_STR, "Topic being learned"),
            "action": {"type": "string", "enum": ["start", "complete", "quiz-result", "milestone"]},
            "data": {"type": "object", "description": "Additional data (section, score, time spent)"},
        }, ("topic", "action")),
    ),
    ToolSpec(
        "create_learning_path",
        "Create a personalized learning path",
        _schema({
            "goal": _described(_STR, "Learning goal"),
            "current_level": {"type": "string", "enum": ["beginner", "intermediate", "advanced"]},
            "time_commitment": _described(_NUM, "Hours per week available"),
            "learning_style": {"type": "string", "enum": ["visual", "auditory", "kinesthetic", "reading"]},
        }, ("goal", "current_level")),
    ),
    ToolSpec(
        "explain_concept",
        "Explain a concept with examples and analogies",
        _schema({
            "concept": _described(_STR, "Concept to explain"),
            "level": {"type": "string", "enum": ["eli5", "basic", "detailed", "technical"]},
            "include_examples": {"type": "boolean", "default": True},
            "include_analogies": {"type": "boolean", "default": True},
        }, ("concept",)),
    ),
)

# ── Debugger (diagnostic) ──

DEBUGGER_TOOLS = (
    ToolSpec(
        "analyze_error",
        "Analyze error messages and stack traces",
        _schema({
            "error": _described(_STR, "Error message or stack trace"),
            "code": _described(_STR, "Related code snippet"),
            "language": _described(_STR, "Programming language"),
            "context": {"type": "object", "description": "Additional context (environment, versions)"},
        }, ("error",)),
    ),
    ToolSpec(
        "suggest_fixes",
        "Suggest fixes for an identified issue",
        _schema({
            "issue": _described(_STR, "Description of the issue"),
            "code": _described(_STR, "Problematic code"),
            "error_type": {"type": "string", "enum": ["syntax", "runtime", "logic", "performance", "security"]},
            "constraints": _described(_STR_LIST, "Constraints the fix must respect"),
        }, ("issue", "code")),
    ),
    ToolSpec(
        "trace_execution",
        "Trace code execution flow line by line",
        _schema({
            "code": _described(_STR, "Code to trace"),
            "inputs": {"type": "object", "description": "Input values for execution"},
            "breakpoints": {"type": "array", "items": {"type": "number"},
                            "description": "Line numbers for breakpoints"},
        }, ("code",)),
    ),
    ToolSpec(
        "performance_analysis",
        "Analyze performance bottlenecks",
        _schema({
            "code": _described(_STR, "Code to analyze"),
            "metrics": {"type": "object", "description": "Performance metrics, if available"},
            "target_improvement": {"type": "string", "enum": ["speed", "memory", "both"]},
        }, ("code",)),
    ),
    ToolSpec(
        "security_scan",
        "Scan code for security vulnerabilities",
        _schema({
            "code": _described(_STR, "Code to scan"),
            "scan_type": {"type": "string", "enum": ["basic", "comprehensive", "owasp-top10"]},
            "language": _described(_STR, "Programming language"),
        }, ("code",)),
    ),
)
