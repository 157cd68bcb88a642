"""
Tests for AgentRegistry lookup and heuristic routing.
"""

import pytest


class TestLookup:
    """Test catalog lookup."""

    def test_ids_in_catalog_order(self, registry):
        """All five personas are listed in catalog order."""
        assert registry.ids() == ["nexy", "dev", "designer", "teacher", "debugger"]

    def test_get_unknown_returns_none(self, registry):
        """Unknown ids read as absent."""
        assert registry.get("ghost") is None
        assert "ghost" not in registry
        assert "dev" in registry

    def test_default_agent(self, registry):
        """The default agent comes from the profile."""
        assert registry.default.id == "nexy"

    def test_by_capability(self, registry):
        """Capability lookup finds the personas declaring it."""
        assert [a.id for a in registry.by_capability("color_palette")] == ["designer"]
        assert [a.id for a in registry.by_capability("debugging")] == ["dev"]
        assert registry.by_capability("juggling") == []

    def test_unknown_default_rejected(self):
        """A default agent missing from the catalog is a configuration error."""
        from agents.registry import AgentRegistry

        with pytest.raises(ValueError):
            AgentRegistry(default_agent_id="ghost")

    def test_every_persona_has_tools(self, registry):
        """Each persona exposes a tool manifest."""
        for agent in registry.all():
            assert agent.tool_names(), agent.id


class TestScoring:
    """Test keyword scoring."""

    def test_trigger_hits_score_two_each(self, registry):
        """Each trigger found in the text is worth two points."""
        from agents.registry import AgentRegistry

        assert AgentRegistry.score(registry.get("teacher"), "explain this quiz") == 4

    def test_role_mention_scores_one(self, registry):
        """Mentioning the persona's role adds one point."""
        from agents.registry import AgentRegistry

        assert AgentRegistry.score(registry.get("dev"), "I want a Code Assistant") == 1

    def test_input_case_is_ignored(self, registry):
        """The input text is lower-cased before trigger matching."""
        from agents.registry import AgentRegistry

        assert AgentRegistry.score(registry.get("designer"), "PALETTE") == 2

    def test_mixed_case_trigger_never_matches(self, registry):
        """A trigger with capitals cannot match the lower-cased text."""
        from agents.registry import AgentRegistry

        designer = registry.get("designer")
        assert "UI review" in designer.capabilities[0].triggers
        assert AgentRegistry.score(designer, "UI review please") == 0
        assert registry.best_match("ui review please").id == "nexy"


class TestBestMatch:
    """Test best_match routing."""

    def test_palette_routes_to_designer(self, registry):
        """A palette request goes to the designer."""
        assert registry.best_match("I need a color palette").id == "designer"

    def test_no_hits_routes_to_default(self, registry):
        """Text with no trigger hits goes to the default agent."""
        assert registry.best_match("hello").id == "nexy"

    def test_tie_routes_to_default(self, registry):
        """A tie at the top goes to the default agent."""
        # dev matches "bug", debugger matches "fix"
        assert registry.best_match("bug fix").id == "nexy"

    def test_strict_winner(self, registry):
        """The single highest scorer wins."""
        assert registry.best_match("explain this quiz").id == "teacher"

    def test_deterministic(self, registry):
        """The same text always routes to the same agent."""
        text = "my page layout looks slow"
        assert len({registry.best_match(text).id for _ in range(5)}) == 1
