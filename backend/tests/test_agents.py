"""
Tests for the persona layer: BaseAgent prompt/memory/streaming behavior and
each persona's tool handlers.
"""

import json
from contextlib import aclosing

import pytest


# ── BaseAgent ──


class TestPromptConstruction:
    """Test build_prompt."""

    @pytest.mark.asyncio
    async def test_prompt_without_user(self, make_agent):
        """Without a user the prompt is system prompt, persona context, then message."""
        agent = make_agent("dev", user_id=None)
        prompt, accessed = await agent.build_prompt("How do I sort a list?")

        assert prompt.startswith(agent.definition.system_prompt)
        assert "Personality: technical, didactic, precise, helpful." in prompt
        assert prompt.endswith("\n\nUser: How do I sort a list?")
        assert accessed is False

    @pytest.mark.asyncio
    async def test_preferences_in_prompt(self, make_agent):
        """Stored preferences are folded into the prompt."""
        agent = make_agent("dev")
        await agent.set_user_preference("language", "python")
        prompt, accessed = await agent.build_prompt("hi")

        assert accessed is True
        assert '[Previous context and preferences]' in prompt
        assert 'Preferences: {"language": "python"}' in prompt

    @pytest.mark.asyncio
    async def test_preferences_are_durable(self, make_agent, clock):
        """The preference bag never expires."""
        agent = make_agent("dev")
        await agent.set_user_preference("language", "python")
        await agent.set_user_preference("editor", "vim")
        clock.advance(365 * 24 * 3600)

        assert await agent.get_user_preferences() == {"language": "python", "editor": "vim"}

    @pytest.mark.asyncio
    async def test_current_message_not_duplicated(self, make_agent, backend):
        """The first turn's prompt has no memory block even though the message was stored."""
        agent = make_agent("dev")
        await agent.send_message("first question", "c1")
        assert "[Previous context and preferences]" not in backend.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_recent_interactions_in_prompt(self, make_agent, backend):
        """Earlier turns appear oldest first in later prompts."""
        backend.queue("first answer", "second answer")
        agent = make_agent("dev")
        await agent.send_message("first question", "c1")
        await agent.send_message("second question", "c1")

        prompt = backend.calls[1]["prompt"]
        assert "user: first question" in prompt
        assert "assistant: first answer" in prompt
        assert prompt.index("user: first question") < prompt.index("assistant: first answer")
        assert "user: second question" not in prompt

    @pytest.mark.asyncio
    async def test_interactions_expire(self, make_agent, clock):
        """Stored turns expire after the interaction TTL."""
        agent = make_agent("dev")
        await agent.send_message("hello", "c1")
        assert len(await agent.get_recent_interactions()) == 2
        clock.advance(7 * 24 * 3600)
        assert await agent.get_recent_interactions() == []


class TestMessaging:
    """Test plain and streaming turns."""

    @pytest.mark.asyncio
    async def test_send_message_reply(self, make_agent, backend):
        """A plain turn returns the backend text."""
        backend.queue("Use sorted().")
        reply = await make_agent("dev").send_message("sort?", "c1")

        assert reply.content == "Use sorted()."
        assert reply.tools_used == []
        assert reply.memory_accessed is True

    @pytest.mark.asyncio
    async def test_send_message_without_user_skips_memory(self, make_agent, memory):
        """Nothing is stored when no user is bound."""
        reply = await make_agent("dev", user_id=None).send_message("hi", "c1")
        assert reply.memory_accessed is False
        assert len(memory) == 0

    @pytest.mark.asyncio
    async def test_stream_calls_on_chunk(self, make_agent, backend):
        """Streaming forwards each delta and returns the full text."""
        backend.chunks = ["Hel", "lo"]
        seen = []
        text = await make_agent("dev").send_message_stream("hi", "c1", on_chunk=seen.append)

        assert seen == ["Hel", "lo"]
        assert text == "Hello"

    @pytest.mark.asyncio
    async def test_stream_accepts_async_callback(self, make_agent, backend):
        """on_chunk may be a coroutine function."""
        backend.chunks = ["a", "b"]
        seen = []

        async def collect(delta):
            seen.append(delta)

        await make_agent("dev").send_message_stream("hi", "c1", on_chunk=collect)
        assert seen == ["a", "b"]

    @pytest.mark.asyncio
    async def test_stream_records_full_reply(self, make_agent, backend):
        """A completed stream stores the assembled reply."""
        backend.chunks = ["Hel", "lo"]
        agent = make_agent("dev")
        await agent.send_message_stream("hi", "c1")

        latest = (await agent.get_recent_interactions())[0]
        assert latest.value["role"] == "assistant"
        assert latest.value["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_stream_early_close_records_partial(self, make_agent, backend):
        """Stopping early still stores the text received so far."""
        backend.chunks = ["Hel", "lo"]
        agent = make_agent("dev")
        async with aclosing(agent.stream_reply("hi", "c1")) as stream:
            async for _ in stream:
                break

        latest = (await agent.get_recent_interactions())[0]
        assert latest.value == {"role": "assistant", "content": "Hel", "conversation_id": "c1"}

    @pytest.mark.asyncio
    async def test_stream_failure_not_recorded(self, make_agent, backend):
        """A failed stream stores only the user message."""
        from errors import CompletionError

        backend.chunks = ["Hel", CompletionError("boom")]
        agent = make_agent("dev")
        with pytest.raises(CompletionError):
            await agent.send_message_stream("hi", "c1")

        roles = [r.value["role"] for r in await agent.get_recent_interactions()]
        assert roles == ["user"]


class TestToolDispatch:
    """Test execute_tool and class registration."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, make_agent):
        """Unknown tools return an error result instead of raising."""
        result = await make_agent("dev").execute_tool("teleport", {})
        assert result == {"error": "Unknown tool: teleport"}

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self, make_agent):
        """Both plain and coroutine handlers are awaited transparently."""
        agent = make_agent("dev")
        sync_result = await agent.execute_tool("syntax_check", {"language": "python", "code": "x = 1"})
        async_result = await agent.execute_tool("refactor_code", {"code": "x = 1"})
        assert sync_result["success"] is True
        assert async_result["success"] is True

    def test_handlers_cover_manifest(self, make_agent):
        """Every tool a persona advertises has a handler."""
        for agent_id in ("nexy", "dev", "designer", "teacher", "debugger"):
            agent = make_agent(agent_id)
            assert set(agent.definition.tool_names()) == set(agent.tool_handlers()), agent_id

    def test_register_requires_agent_id(self):
        """Registering a persona class without AGENT_ID fails."""
        from agents.base import BaseAgent, register_agent_class

        class Nameless(BaseAgent):
            def tool_handlers(self):
                return {}

        with pytest.raises(ValueError):
            register_agent_class(Nameless)

    def test_create_all_builds_every_persona(self, backend, memory, registry):
        """create_all instantiates one agent per catalog entry."""
        import agents  # noqa: F401
        from agents.base import BaseAgent

        built = BaseAgent.create_all(registry.as_dict(), backend, memory)
        assert set(built) == {"nexy", "dev", "designer", "teacher", "debugger"}
        assert type(built["dev"]).__name__ == "DevAgent"


# ── Nexy ──


class TestNexyTools:
    """Test routing and coordination tools."""

    @pytest.mark.asyncio
    async def test_route_task(self, make_agent, memory):
        """Routing returns handoff context and records the routing."""
        agent = make_agent("nexy")
        result = await agent.route_task("build a form", "designer", context={"urgent": True})

        assert result["success"] is True
        assert result["routed_to"] == "designer"
        assert result["handoff_context"] == {
            "original_task": "build a form", "routing_agent": "nexy", "urgent": True,
        }
        assert len(await memory.search_by_prefix("alice", "nexy", "routing_")) == 1

    @pytest.mark.asyncio
    async def test_route_task_unknown_agent(self, make_agent):
        """Routing to an unknown agent fails cleanly."""
        result = await make_agent("nexy").route_task("x", "wizard")
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_coordination_lifecycle(self, make_agent, memory):
        """A coordination finishes once every participant completes."""
        agent = make_agent("nexy")
        started = await agent.coordinate_agents(["dev", "designer"], "ship the page")
        cid = started["coordination_id"]
        assert started["execution_mode"] == "sequential"
        assert len(agent.active_coordinations()) == 1

        assert await agent.update_coordination_progress(cid, "dev", "completed") is True
        status = await agent.get_agent_status()
        assert status["designer"]["active_coordinations"] == 1

        summary = await agent.summarize_progress("c1")
        assert summary["overall_progress"] == 50.0
        assert summary["pending_tasks"] == [
            {"agent": "designer", "coordination": cid, "status": "pending"},
        ]

        await agent.update_coordination_progress(cid, "designer", "completed")
        assert agent.active_coordinations() == []
        record = await memory.retrieve("alice", "nexy", f"coordination_{cid}")
        assert record.value["status"] == "completed"

    @pytest.mark.asyncio
    async def test_update_unknown_coordination(self, make_agent):
        """Updating an unknown coordination reports failure."""
        agent = make_agent("nexy")
        assert await agent.update_coordination_progress("nope", "dev", "completed") is False

    @pytest.mark.asyncio
    async def test_coordinate_unknown_agents(self, make_agent):
        """Coordinations reject unknown participants."""
        result = await make_agent("nexy").coordinate_agents(["dev", "wizard"], "plan")
        assert result == {"success": False, "error": "Unknown agents: wizard"}

    @pytest.mark.asyncio
    async def test_agent_status_memory_counts(self, make_agent, memory):
        """include_memory reports stored records per agent."""
        await memory.store("alice", "teacher", "progress_python", {})
        status = await make_agent("nexy").get_agent_status(include_memory=True)
        assert status["teacher"]["memory_count"] == 1
        assert status["dev"]["memory_count"] == 0


# ── Dev ──


class TestDevTools:
    """Test code tools."""

    def test_syntax_check_python_error(self, make_agent):
        """Python syntax errors carry a line and a message."""
        result = make_agent("dev").syntax_check("python", "def f(:\n    pass\n")
        assert result["success"] is False
        assert result["errors"][0]["line"] == 1

    def test_syntax_check_python_warnings(self, make_agent):
        """Strict mode flags bare except clauses."""
        code = "try:\n    run()\nexcept:\n    pass\n"
        result = make_agent("dev").syntax_check("python", code)
        assert result["success"] is True
        assert {"line": 3, "message": "Bare except clause"} in result["warnings"]

    def test_syntax_check_javascript_brackets(self, make_agent):
        """Mismatched brackets are reported."""
        result = make_agent("dev").syntax_check("javascript", "foo(]\n")
        messages = [e["message"] for e in result["errors"]]
        assert "Unexpected ']'" in messages
        assert "Unclosed '('" in messages

    def test_syntax_check_javascript_equality(self, make_agent):
        """Strict mode recommends ===."""
        result = make_agent("dev").syntax_check("javascript", "if (a == b) { go(); }\n")
        assert result["success"] is True
        assert result["warnings"] == [{"line": 1, "message": "Use === instead of =="}]

    def test_syntax_check_unsupported(self, make_agent):
        """Unknown languages are rejected."""
        assert make_agent("dev").syntax_check("cobol", "")["success"] is False

    def test_generate_pytest(self, make_agent):
        """Public top-level functions get a pytest case each."""
        code = "def add(a, b):\n    return a + b\n\ndef _hidden():\n    pass\n"
        result = make_agent("dev").generate_tests(code, "pytest", module="calc")

        assert result["functions_found"] == ["add"]
        assert "from calc import add" in result["tests"]
        assert "def test_add_is_callable():" in result["tests"]

    def test_generate_jest(self, make_agent):
        """JavaScript functions are found by pattern."""
        code = "function greet(name) { return name; }\nconst add = (a, b) => a + b;\n"
        result = make_agent("dev").generate_tests(code, "jest", module="util")

        assert result["functions_found"] == ["greet", "add"]
        assert "require('./util')" in result["tests"]

    @pytest.mark.asyncio
    async def test_analyze_requirements(self, make_agent, tmp_path):
        """requirements.txt entries are parsed and unpinned ones flagged."""
        path = tmp_path / "requirements.txt"
        path.write_text("requests==2.31.0\nflask>=2.0  # web\n\n-r other.txt\n")
        agent = make_agent("dev")
        agent.workspace_root = tmp_path
        result = await agent.analyze_dependencies(str(path))

        assert result["ecosystem"] == "pip"
        assert result["dependencies"] == {"requests": "==2.31.0", "flask": ">=2.0"}
        assert result["unpinned"] == ["flask"]
        assert len(result["issues"]) == 1

    @pytest.mark.asyncio
    async def test_analyze_package_json(self, make_agent, tmp_path):
        """package.json ranges count as unpinned."""
        path = tmp_path / "package.json"
        path.write_text(json.dumps({
            "dependencies": {"react": "^18.2.0", "lodash": "4.17.21"},
            "devDependencies": {"jest": "*"},
        }))
        agent = make_agent("dev")
        agent.workspace_root = tmp_path
        result = await agent.analyze_dependencies(str(path))

        assert result["ecosystem"] == "npm"
        assert result["unpinned"] == ["jest", "react"]

    @pytest.mark.asyncio
    async def test_analyze_pyproject(self, make_agent, tmp_path):
        """pyproject.toml dependencies and extras are read."""
        path = tmp_path / "pyproject.toml"
        path.write_text(
            '[project]\nname = "x"\ndependencies = ["httpx>=0.27", "pyyaml==6.0.1"]\n'
            '[project.optional-dependencies]\ntest = ["pytest>=8.0"]\n'
        )
        agent = make_agent("dev")
        agent.workspace_root = tmp_path
        result = await agent.analyze_dependencies(str(path))

        assert result["dependencies"] == {"httpx": ">=0.27", "pyyaml": "==6.0.1"}
        assert result["dev_dependencies"] == {"pytest": ">=8.0"}
        assert result["unpinned"] == ["httpx", "pytest"]

    @pytest.mark.asyncio
    async def test_analyze_missing_file(self, make_agent, tmp_path):
        """A missing manifest is reported, not raised."""
        agent = make_agent("dev")
        agent.workspace_root = tmp_path
        result = await agent.analyze_dependencies(str(tmp_path / "nope.txt"))
        assert result["success"] is False
        assert result["error"].startswith("File not found")

    @pytest.mark.asyncio
    async def test_analyze_relative_path_in_workspace(self, make_agent, tmp_path):
        """Relative manifest paths are resolved against the workspace root."""
        (tmp_path / "app").mkdir()
        (tmp_path / "app" / "requirements.txt").write_text("requests==2.31.0\n")
        agent = make_agent("dev")
        agent.workspace_root = tmp_path
        result = await agent.analyze_dependencies("app/requirements.txt")

        assert result["success"] is True
        assert result["dependencies"] == {"requests": "==2.31.0"}

    @pytest.mark.asyncio
    async def test_analyze_rejects_paths_outside_workspace(self, make_agent, tmp_path):
        """Manifests outside the workspace root are never read."""
        workspace = tmp_path / "workspace"
        workspace.mkdir()
        outside = tmp_path / "requirements.txt"
        outside.write_text("secret==1.0\n")
        agent = make_agent("dev")
        agent.workspace_root = workspace

        for candidate in (str(outside), "../requirements.txt"):
            result = await agent.analyze_dependencies(candidate)
            assert result["success"] is False
            assert result["error"].startswith("Path outside workspace")
            assert "secret" not in json.dumps(result)

    @pytest.mark.asyncio
    async def test_execute_code_disabled(self, make_agent):
        """Execution is refused unless the profile enables it."""
        result = await make_agent("dev").execute_code("python", "print(1)")
        assert result["success"] is False
        assert "disabled" in result["error"]

    @pytest.mark.asyncio
    async def test_execute_code_unsupported_language(self, make_agent):
        """Only python and bash can run."""
        agent = make_agent("dev")
        agent.allow_execution = True
        result = await agent.execute_code("ruby", "puts 1")
        assert result["error"] == "Unsupported language: ruby"

    @pytest.mark.asyncio
    async def test_refactor_flags_issues(self, make_agent):
        """Modernization and error-handling issues are suggested."""
        code = "var x = 1;\ntry:\n    pass\nexcept:\n    pass\n"
        result = await make_agent("dev").refactor_code(code)
        kinds = {s["type"] for s in result["suggestions"]}
        assert {"modernization", "error-handling"} <= kinds
        assert result["complexity"]["lines"] == 5


# ── Designer ──


class TestDesignerTools:
    """Test visual tools."""

    def test_contrast_ratio_extremes(self):
        """Black on white is the maximum contrast."""
        from agents.designer import contrast_ratio

        assert contrast_ratio("#000000", "#ffffff") == 21.0
        assert contrast_ratio("#ffffff", "#ffffff") == 1.0

    def test_adjust_lightness(self):
        """Lightness shifts clamp to black and white."""
        from agents.designer import adjust_lightness

        assert adjust_lightness("#808080", 1.0) == "#ffffff"
        assert adjust_lightness("#808080", -1.0) == "#000000"

    @pytest.mark.asyncio
    async def test_suggest_colors(self, make_agent):
        """Palettes come with shades and a contrast report."""
        result = await make_agent("designer").suggest_colors("dark", count=3)

        assert result["palette"]["primary"] == "#6366f1"
        assert len(result["variations"]) == 3
        assert result["variations"][0] == "#6366f1"
        report = result["accessibility"]["contrast_ratios"]
        assert report["text_on_background"]["rating"] == "AAA"

    @pytest.mark.asyncio
    async def test_suggest_colors_base_color(self, make_agent):
        """A base color replaces the primary; bad hex is rejected."""
        agent = make_agent("designer")
        assert (await agent.suggest_colors("nature", base_color="#FF0000"))["palette"]["primary"] == "#ff0000"
        assert (await agent.suggest_colors("nature", base_color="red"))["success"] is False

    @pytest.mark.asyncio
    async def test_unknown_theme_falls_back(self, make_agent):
        """Unknown themes use the professional palette."""
        from agents.designer import PALETTES

        result = await make_agent("designer").suggest_colors("neon")
        assert result["palette"] == PALETTES["professional"]

    def test_accessibility_score(self, make_agent):
        """Each issue costs ten points."""
        html = '<img src="a.png"><button><svg></svg></button><h1>T</h1><h3>S</h3>'
        result = make_agent("designer").check_accessibility(html)

        kinds = [i["type"] for i in result["issues"]]
        assert kinds == ["missing-alt", "button-label", "heading-hierarchy"]
        assert result["score"] == 70

    def test_accessibility_clean(self, make_agent):
        """Clean markup scores 100."""
        result = make_agent("designer").check_accessibility('<img src="a.png" alt="A">')
        assert result["score"] == 100

    def test_generate_icons(self, make_agent):
        """Known icons use their path; filled icons use currentColor."""
        agent = make_agent("designer")
        home = agent.generate_icons("home", style="filled", size=32)
        assert 'fill="currentColor"' in home["svg"]
        assert 'width="32"' in home["svg"]

        generic = agent.generate_icons("star")
        assert ">S</text>" in generic["svg"]
        assert generic["usage"]["react"].startswith("const StarIcon")

    @pytest.mark.asyncio
    async def test_generate_component(self, make_agent):
        """Components include typed props and usage."""
        props = [{"name": "title", "type": "string", "required": True},
                 {"name": "note", "type": "string"}]
        result = await make_agent("designer").generate_component(
            "Card", "A card", "css", props=props,
        )

        assert result["usage"] == "<Card title={} />"
        assert "interface CardProps" in result["code"]["component"]
        assert "note?: string;" in result["code"]["component"]
        assert result["code"]["styles"].startswith(".card {")

    @pytest.mark.asyncio
    async def test_generate_component_unsupported(self, make_agent):
        """Only React-style frameworks are generated."""
        result = await make_agent("designer").generate_component("Card", "x", "css", framework="vue")
        assert result["success"] is False

    def test_optimize_layout(self, make_agent):
        """Floats are modernized and breakpoints emitted."""
        result = make_agent("designer").optimize_layout(
            ".col { float: left; }", target_devices=["mobile", "desktop"],
        )
        assert result["optimizations"][0]["type"] == "modernization"
        assert "display: flex;" in result["optimizations"][0]["code"]
        assert "@media (min-width: 640px)" in result["responsive_code"]
        assert "768px" not in result["responsive_code"]


# ── Teacher ──


class TestTeacherTools:
    """Test educational tools."""

    @pytest.mark.asyncio
    async def test_track_progress(self, make_agent):
        """Progress combines sections and quiz scores."""
        agent = make_agent("teacher")
        await agent.track_progress("python", "start")
        await agent.track_progress("python", "complete", {"section": "intro", "time_spent": 30})
        await agent.track_progress("python", "complete", {"section": "core", "time_spent": 30})
        result = await agent.track_progress(
            "python", "quiz-result", {"quiz_id": "q1", "score": 8, "max_score": 10},
        )

        assert result["progress_percentage"] == pytest.approx(62.0)
        assert len(result["achievements"]) == 3
        assert result["progress"]["total_time_spent"] == 60

    @pytest.mark.asyncio
    async def test_progress_is_durable(self, make_agent, clock):
        """Progress records never expire."""
        agent = make_agent("teacher")
        await agent.track_progress("python", "complete", {"section": "intro"})
        clock.advance(365 * 24 * 3600)
        record = await agent.recall("progress_python")
        assert record is not None
        assert record.expires_at is None

    @pytest.mark.asyncio
    async def test_track_progress_requires_user(self, make_agent):
        """Without a user there is nothing to track against."""
        result = await make_agent("teacher", user_id=None).track_progress("python", "start")
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_track_progress_unknown_action(self, make_agent):
        """Unknown actions are rejected."""
        result = await make_agent("teacher").track_progress("python", "dance")
        assert result["error"] == "Unknown action: dance"

    def test_progress_percentage_caps(self):
        """Progress never exceeds 100."""
        from agents.teacher import progress_percentage

        progress = {
            "completed_sections": [{}] * 8,
            "quiz_scores": [{"score": 10, "max_score": 10}],
        }
        assert progress_percentage(progress) == 100.0

    @pytest.mark.asyncio
    async def test_generate_quiz(self, make_agent):
        """Question types cycle and points follow difficulty."""
        result = await make_agent("teacher").generate_quiz("sql", 3, difficulty="hard")

        types = [q["type"] for q in result["quiz"]["questions"]]
        assert types == ["multiple-choice", "true-false", "multiple-choice"]
        assert result["total_points"] == 90
        assert result["estimated_minutes"] == 6

    @pytest.mark.asyncio
    async def test_create_tutorial(self, make_agent, memory):
        """Tutorials have four sections and are stored under their id."""
        result = await make_agent("teacher").create_tutorial("git", "beginner")
        tutorial = result["tutorial"]

        assert len(tutorial["sections"]) == 4
        assert tutorial["id"].startswith("tutorial_")
        assert await memory.retrieve("alice", "teacher", tutorial["id"]) is not None

    @pytest.mark.asyncio
    async def test_learning_path_schedule(self, make_agent):
        """One hour a week spreads the three modules over six weeks."""
        result = await make_agent("teacher").create_learning_path(
            "rust", "beginner", time_commitment=1, learning_style="kinesthetic",
        )
        path = result["learning_path"]

        assert path["estimated_duration"] == 360
        assert result["weekly_schedule"]["total_weeks"] == 6
        assert all("Hands-on Activity" in m["exercises"] for m in path["modules"])
        assert "Build projects while learning" in result["tips"]

    @pytest.mark.asyncio
    async def test_explain_concept(self, make_agent):
        """Explanations honor the example and analogy switches."""
        result = await make_agent("teacher").explain_concept(
            "recursion", level="eli5", include_analogies=False,
        )
        explanation = result["explanation"]
        assert explanation["definition"].startswith("recursion is like")
        assert explanation["analogies"] == []
        assert len(explanation["examples"]) == 2


# ── Debugger ──


class TestDebuggerTools:
    """Test problem-solving tools."""

    def test_classify_error(self):
        """Error classes are matched by name."""
        from agents.debugger import classify_error

        assert classify_error("TypeError: unsupported operand") == "type"
        assert classify_error("ReferenceError: x is not defined") == "reference"
        assert classify_error("ValueError: bad value") == "runtime"
        assert classify_error("it just hangs") == "unknown"

    def test_assess_severity(self):
        """Severity follows the wording of the message."""
        from agents.debugger import assess_severity

        assert assess_severity("Fatal: out of memory") == "critical"
        assert assess_severity("KeyError: 'id'") == "high"
        assert assess_severity("DeprecationWarning: old api") == "medium"
        assert assess_severity("slow page") == "low"

    @pytest.mark.asyncio
    async def test_analyze_error(self, make_agent):
        """Missing-value errors get a targeted quick fix."""
        result = await make_agent("debugger").analyze_error(
            "AttributeError: 'NoneType' object has no attribute 'name' (line 12)",
        )
        analysis = result["analysis"]

        assert analysis["error_type"] == "type"
        assert "Line 12" in analysis["affected_code"]
        assert result["quick_fix"]["id"] == "fix_undefined"
        assert len(result["debugging_steps"]) == 6

    def test_suggest_fixes_constraints(self, make_agent):
        """Constraints filter the candidate fixes."""
        agent = make_agent("debugger")
        no_try = agent.suggest_fixes("crash", "x = compute()", constraints=["no-try-catch"])
        assert [f["id"] for f in no_try["fixes"]] == ["fix_2", "fix_3"]
        assert no_try["recommended_fix"]["id"] == "fix_2"

        fast = agent.suggest_fixes("crash", "x = compute()", constraints=["performance"])
        assert [f["id"] for f in fast["fixes"]] == ["fix_1", "fix_2"]

    def test_trace_execution(self, make_agent):
        """Assignments, output and breakpoints show up in the trace."""
        code = "x = 1\n# note\nprint(x)\n"
        result = make_agent("debugger").trace_execution(code, breakpoints=[3])
        summary = result["summary"]

        assert summary == {
            "total_steps": 3,
            "breakpoints_hit": 1,
            "variables_tracked": 1,
            "output_generated": 2,
        }
        assert result["trace"][-1]["state"]["_breakpoint"] is True
        assert result["trace"][1]["state"] == {"x": "value_at_line_1"}

    @pytest.mark.asyncio
    async def test_performance_analysis(self, make_agent):
        """Nested loops raise complexity and are flagged."""
        code = "for i in a:\n    for j in b:\n        total += i * j\n"
        result = await make_agent("debugger").performance_analysis(code, target_improvement="speed")
        analysis = result["analysis"]

        assert analysis["time_complexity"] == "O(n^2)"
        assert analysis["bottlenecks"][0]["type"] == "nested-loops"
        assert [o["type"] for o in analysis["optimizations"]] == ["algorithm"]

    @pytest.mark.asyncio
    async def test_security_scan(self, make_agent):
        """Findings carry line numbers and are sorted by severity."""
        code = 'password = "hunter22"\nresult = eval(user_input)\n'
        result = await make_agent("debugger").security_scan(code)
        vulns = result["report"]["vulnerabilities"]

        assert [v["type"] for v in vulns] == ["code-injection", "hardcoded-secret"]
        assert vulns[0]["line"] == 2
        assert result["report"]["severity"] == "critical"
        assert len(result["critical_issues"]) == 1

    @pytest.mark.asyncio
    async def test_security_scan_clean(self, make_agent):
        """Clean code is compliant."""
        result = await make_agent("debugger").security_scan("total = a + b\n")
        assert result["report"]["compliance"]["owasp"] == "compliant"
        assert result["report"]["severity"] == "low"

    @pytest.mark.asyncio
    async def test_comprehensive_scan_checks_input(self, make_agent):
        """Comprehensive scans flag unvalidated input."""
        result = await make_agent("debugger").security_scan(
            "name = input()\n", scan_type="comprehensive",
        )
        assert result["report"]["vulnerabilities"][0]["type"] == "input-validation"
