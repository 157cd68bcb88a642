"""
Tests for ConversationManager.
Tests conversation lifecycle, handoffs, turn bookkeeping, streaming
finalization, collaboration suggestions and the context bag.
"""

from contextlib import aclosing

import pytest

from conftest import tool_response


class TestLifecycle:
    """Test creating, listing and clearing conversations."""

    def test_create_with_default_agent(self, manager):
        """Without an agent id the default persona is active."""
        cid = manager.create_conversation()

        assert cid.startswith("agent_conv_")
        assert manager.get_active_agent(cid).id == "nexy"
        assert manager.get_conversation_history(cid) == []

    def test_create_with_agent(self, manager):
        """An explicit agent id becomes the active agent."""
        cid = manager.create_conversation("teacher")
        assert manager.get_conversation(cid).active_agent_id == "teacher"

    def test_create_with_unknown_agent(self, manager):
        """Unknown initial agents are rejected."""
        from errors import AgentNotFoundError

        with pytest.raises(AgentNotFoundError):
            manager.create_conversation("wizard")

    def test_ids_are_unique(self, manager):
        """Each conversation gets its own id."""
        ids = {manager.create_conversation() for _ in range(20)}
        assert len(ids) == 20

    def test_list_conversations(self, manager):
        """Listing returns a summary per conversation."""
        a = manager.create_conversation()
        b = manager.create_conversation("dev")
        listed = {c["id"]: c for c in manager.list_conversations()}

        assert set(listed) == {a, b}
        assert listed[b]["active_agent_id"] == "dev"
        assert listed[a]["message_count"] == 0

    @pytest.mark.asyncio
    async def test_clear_conversation(self, manager, backend):
        """Clearing wipes history and context and resets the backend session."""
        backend.queue("That's a bug.")
        cid = manager.create_conversation()
        await manager.send_message(cid, "it broke")
        manager.set_context(cid, "project", "site")

        assert manager.clear_conversation(cid) is True
        assert manager.get_conversation_history(cid) == []
        assert manager.get_context(cid, "project") is None
        assert manager.get_active_agent(cid).id == "nexy"
        assert backend.reset_calls == [cid]
        assert len(manager.get_collaboration_suggestions(cid)) == 1

    def test_clear_unknown(self, manager):
        """Clearing an unknown conversation reports False."""
        assert manager.clear_conversation("agent_conv_missing") is False

    @pytest.mark.asyncio
    async def test_injected_store_is_used(self, backend, memory, registry, clock):
        """An empty store passed in is the one the manager works on."""
        from core.conversation import ConversationStore
        from core.manager import ConversationManager

        store = ConversationStore(clock=clock, queue_size=2)
        manager = ConversationManager(backend, registry=registry, memory=memory, store=store)

        assert manager.store is store
        assert manager.registry is registry
        cid = manager.create_conversation()
        assert store.ids() == [cid]

        for n in range(3):
            backend.queue(f"bug number {n}")
            await manager.send_message(cid, f"report {n}")
        assert len(manager.get_collaboration_suggestions(cid)) == 2
        assert manager.get_conversation_history(cid)[0].timestamp == clock.now


class TestSwitchAgent:
    """Test explicit persona handoffs."""

    def test_switch_appends_transition(self, manager, registry):
        """Switching records a hand-over message from the new agent."""
        cid = manager.create_conversation()
        assert manager.switch_agent(cid, "teacher") is True

        history = manager.get_conversation_history(cid)
        assert len(history) == 1
        message = history[0]
        teacher = registry.get("teacher")
        assert message.role == "assistant"
        assert message.agent_id == "teacher"
        assert message.content == f"Nexy has handed over to Teacher. {teacher.greeting}"
        assert message.metadata.mood == "welcoming"
        assert manager.get_active_agent(cid).id == "teacher"

    def test_switch_to_unknown_agent(self, manager):
        """An unknown target leaves the conversation untouched."""
        cid = manager.create_conversation()
        assert manager.switch_agent(cid, "wizard") is False
        assert manager.get_active_agent(cid).id == "nexy"
        assert manager.get_conversation_history(cid) == []

    def test_switch_unknown_conversation(self, manager):
        """Switching an unknown conversation reports False."""
        assert manager.switch_agent("agent_conv_missing", "dev") is False

    def test_switch_to_same_agent(self, manager):
        """Switching to the current agent still records a transition."""
        cid = manager.create_conversation("dev")
        assert manager.switch_agent(cid, "dev") is True
        assert manager.get_conversation_history(cid)[0].content.startswith(
            "Dev has handed over to Dev."
        )


class TestSendMessage:
    """Test plain turns."""

    @pytest.mark.asyncio
    async def test_turn_appends_user_and_assistant(self, manager, backend, clock):
        """A turn records the user message then the reply."""
        backend.queue("Here you go.")
        cid = manager.create_conversation()
        reply = await manager.send_message(cid, "hello")

        history = manager.get_conversation_history(cid)
        assert [(m.role, m.agent_id, m.content) for m in history] == [
            ("user", "user", "hello"),
            ("assistant", "nexy", "Here you go."),
        ]
        assert history[-1] == reply
        assert reply.timestamp == clock.now

    @pytest.mark.asyncio
    async def test_bug_reply_suggests_debugger(self, manager, backend):
        """A reply mentioning a bug queues a suggestion for the debugger."""
        backend.queue("That sounds like a bug. Let's track it down step by step.")
        cid = manager.create_conversation()
        reply = await manager.send_message(cid, "My app keeps crashing")

        assert reply.metadata.suggested_next_agent == "debugger"
        suggestions = manager.get_collaboration_suggestions(cid)
        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.from_agent == "nexy"
        assert suggestion.to_agent == "debugger"
        assert suggestion.reason == "Context suggests expertise needed"
        assert suggestion.context == {"last_message": "My app keeps crashing"}

    @pytest.mark.asyncio
    async def test_never_switches_automatically(self, manager, backend):
        """Routing hints and suggestions never change the active agent."""
        backend.queue("A bug, maybe in the design.")
        cid = manager.create_conversation()
        await manager.send_message(cid, "I need a color palette")
        assert manager.get_active_agent(cid).id == "nexy"

    @pytest.mark.asyncio
    async def test_explicit_agent_for_one_turn(self, manager, backend):
        """agent_id answers one turn without moving the active pointer."""
        cid = manager.create_conversation()
        reply = await manager.send_message(cid, "review this", agent_id="dev")

        assert reply.agent_id == "dev"
        assert manager.get_active_agent(cid).id == "nexy"

    @pytest.mark.asyncio
    async def test_explicit_unknown_agent(self, manager):
        """An unknown per-turn agent is rejected before anything is recorded."""
        from errors import AgentNotFoundError

        cid = manager.create_conversation()
        with pytest.raises(AgentNotFoundError):
            await manager.send_message(cid, "hi", agent_id="wizard")
        assert manager.get_conversation_history(cid) == []

    @pytest.mark.asyncio
    async def test_tools_used_in_metadata(self, manager, backend):
        """Tools run during the turn are listed in the reply metadata."""
        backend.queue(
            tool_response(("route_task", {"task": "style it", "suggested_agent": "designer"})),
            "Sent to Designer.",
        )
        cid = manager.create_conversation()
        reply = await manager.send_message(cid, "make it pretty")

        assert reply.content == "Sent to Designer."
        assert reply.metadata.tools_used == ("route_task",)

    @pytest.mark.asyncio
    async def test_memory_accessed_with_user(self, manager):
        """Binding a user makes personas consult memory."""
        cid = manager.create_conversation()
        assert (await manager.send_message(cid, "hi")).metadata.memory_accessed is False

        manager.set_user_id("alice")
        assert (await manager.send_message(cid, "hi")).metadata.memory_accessed is True

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_user_message(self, manager, backend):
        """A failed turn raises and records only the user message."""
        from errors import CompletionError

        backend.queue(CompletionError("upstream down"))
        cid = manager.create_conversation()
        with pytest.raises(CompletionError):
            await manager.send_message(cid, "hello")

        assert [m.role for m in manager.get_conversation_history(cid)] == ["user"]

    @pytest.mark.asyncio
    async def test_suggestion_queue_is_bounded(self, manager, backend):
        """Only the newest suggestions are kept."""
        cid = manager.create_conversation()
        for n in range(12):
            backend.queue(f"bug number {n}")
            await manager.send_message(cid, f"report {n}")

        suggestions = manager.get_collaboration_suggestions(cid)
        assert len(suggestions) == 10
        assert suggestions[0].context == {"last_message": "report 2"}

    @pytest.mark.asyncio
    async def test_suggestions_filtered_by_active_agent(self, manager, backend):
        """Suggestions are reported for the agent that raised them."""
        backend.queue("Looks like a bug.")
        cid = manager.create_conversation()
        await manager.send_message(cid, "it broke")

        manager.switch_agent(cid, "teacher")
        assert manager.get_collaboration_suggestions(cid) == []
        manager.switch_agent(cid, "nexy")
        assert len(manager.get_collaboration_suggestions(cid)) == 1


class TestStreaming:
    """Test streamed turns."""

    @pytest.mark.asyncio
    async def test_stream_reassembles_reply(self, manager, backend):
        """The concatenated deltas equal the stored reply."""
        backend.chunks = ["Hello ", "there", "!"]
        cid = manager.create_conversation()
        deltas = [d async for d in manager.stream_message(cid, "hi")]

        history = manager.get_conversation_history(cid)
        assert deltas == ["Hello ", "there", "!"]
        assert history[-1].content == "".join(deltas)
        assert history[-1].metadata.mood == "excited"
        assert history[-1].metadata.tools_used == ()

    @pytest.mark.asyncio
    async def test_send_message_stream_returns_message(self, manager, backend):
        """The callback sees each delta and the appended message is returned."""
        backend.chunks = ["a", "b", "c"]
        seen = []

        async def on_chunk(delta):
            seen.append(delta)

        cid = manager.create_conversation()
        message = await manager.send_message_stream(cid, "hi", on_chunk=on_chunk)

        assert seen == ["a", "b", "c"]
        assert message.content == "abc"
        assert manager.get_conversation_history(cid)[-1] == message

    @pytest.mark.asyncio
    async def test_stream_queues_suggestions(self, manager, backend):
        """Streamed replies are analyzed like plain ones."""
        backend.chunks = ["That is a ", "bug."]
        cid = manager.create_conversation()
        await manager.send_message_stream(cid, "it broke")
        assert manager.get_collaboration_suggestions(cid)[0].to_agent == "debugger"

    @pytest.mark.asyncio
    async def test_early_close_keeps_partial(self, manager, backend):
        """A consumer that stops early still gets the partial reply recorded."""
        backend.chunks = ["Hello ", "there"]
        cid = manager.create_conversation()
        async with aclosing(manager.stream_message(cid, "hi")) as stream:
            async for _ in stream:
                break

        history = manager.get_conversation_history(cid)
        assert [m.role for m in history] == ["user", "assistant"]
        assert history[-1].content == "Hello "

    @pytest.mark.asyncio
    async def test_stream_failure_appends_nothing(self, manager, backend):
        """A failed stream leaves only the user message."""
        from errors import CompletionError

        backend.chunks = ["Hel", CompletionError("boom")]
        cid = manager.create_conversation()
        with pytest.raises(CompletionError):
            async for _ in manager.stream_message(cid, "hi"):
                pass

        assert [m.role for m in manager.get_conversation_history(cid)] == ["user"]

    @pytest.mark.asyncio
    async def test_stream_reports_memory_access(self, manager, backend):
        """Streamed replies carry the same memory flag as plain ones."""
        backend.chunks = ["ok"]
        cid = manager.create_conversation()
        first = await manager.send_message_stream(cid, "hi")
        assert first.metadata.memory_accessed is False

        manager.set_user_id("alice")
        second = await manager.send_message_stream(cid, "hi")
        assert second.metadata.memory_accessed is True


class TestNotFound:
    """Test operations on unknown conversations."""

    @pytest.mark.asyncio
    async def test_send_to_unknown(self, manager):
        """Sending to an unknown conversation raises."""
        from errors import ConversationNotFoundError

        with pytest.raises(ConversationNotFoundError):
            await manager.send_message("agent_conv_missing", "hi")
        with pytest.raises(ConversationNotFoundError):
            await manager.send_message_stream("agent_conv_missing", "hi")

    def test_queries_on_unknown(self, manager):
        """Queries raise or return None as documented."""
        from errors import ConversationNotFoundError

        missing = "agent_conv_missing"
        with pytest.raises(ConversationNotFoundError):
            manager.get_conversation_history(missing)
        with pytest.raises(ConversationNotFoundError):
            manager.get_collaboration_suggestions(missing)
        with pytest.raises(ConversationNotFoundError):
            manager.set_context(missing, "k", "v")
        assert manager.get_context(missing, "k") is None
        assert manager.get_active_agent(missing) is None
        assert manager.get_conversation(missing) is None


class TestContextBag:
    """Test the per-conversation context bag."""

    def test_set_and_get(self, manager, clock):
        """Values round-trip and the conversation is touched."""
        cid = manager.create_conversation()
        clock.advance(5)
        manager.set_context(cid, "project", {"name": "site"})

        assert manager.get_context(cid, "project") == {"name": "site"}
        assert manager.get_context(cid, "absent") is None
        conversation = manager.get_conversation(cid)
        assert conversation.updated_at == conversation.created_at + 5

    def test_context_is_per_conversation(self, manager):
        """Context does not leak between conversations."""
        a = manager.create_conversation()
        b = manager.create_conversation()
        manager.set_context(a, "k", 1)
        assert manager.get_context(b, "k") is None
