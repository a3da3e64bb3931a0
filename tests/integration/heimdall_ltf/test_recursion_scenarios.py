"""Integration tests for re-entrant handler execution within one context."""

import pytest

from heimdall_ltf import (
    GuardState,
    HandlerError,
    ILifecycleHandler,
    IMutator,
    OperationKind,
    Phase,
    Record,
    dispatch,
    execution_context,
    resolve,
)


class ParentAccountHandler(ILifecycleHandler):
    """Creates one child account per inserted account, up to a fixed depth."""

    runs = 0

    def after_insert(self, new_records, old_records_by_id):
        type(self).runs += 1
        children = [
            Record(
                object_type="Account",
                fields={"Name": f"{record.get('Name')} child", "ParentId": record.id, "Depth": record.get("Depth", 0) + 1},
            )
            for record in new_records
            if record.get("Depth", 0) < 2
        ]
        resolve(IMutator).insert_all(children)


class TouchingHandler(ILifecycleHandler):
    """Updates the records it was just given."""

    def after_insert(self, new_records, old_records_by_id):
        touched = [
            Record(id=record.id, object_type=record.object_type, fields={**record.fields, "Touched": True})
            for record in new_records
        ]
        resolve(IMutator).update_all(touched)


class UpdateWatcher(ILifecycleHandler):
    seen = []

    def before_update(self, new_records, old_records_by_id):
        type(self).seen.extend(record.id for record in new_records)


class ExplodingHandler(ILifecycleHandler):
    def before_insert(self, new_records, old_records_by_id):
        raise HandlerError("boom")


@pytest.fixture(autouse=True)
def reset_counters():
    ParentAccountHandler.runs = 0
    UpdateWatcher.seen = []


def account(name):
    return Record(object_type="Account", fields={"Name": name})


class TestSameHandlerReentry:
    """A handler that triggers its own object type."""

    def test_nested_event_is_skipped(self, store, context):
        """Test that the handler does not run for the event it caused."""
        store.bind_trigger("Account", ParentAccountHandler)

        resolve(IMutator).insert_all([account("Acme")])

        # The child is persisted, but the nested after-insert was skipped.
        assert store.count("Account") == 2
        assert ParentAccountHandler.runs == 1
        assert context.guard.state(ParentAccountHandler) == GuardState.IDLE

    def test_guard_is_idle_for_the_next_top_level_operation(self, store):
        """Test that a second operation in the same context runs the handler again."""
        store.bind_trigger("Account", ParentAccountHandler)
        mutator = resolve(IMutator)

        mutator.insert_all([account("Acme")])
        mutator.insert_all([account("Globex")])

        assert ParentAccountHandler.runs == 2
        assert store.count("Account") == 4

    def test_allowed_nesting_recurses(self, store, overrides):
        """Test that permitting nesting lets the handler see its own events."""
        store.bind_trigger("Account", ParentAccountHandler)
        overrides.allow_nested(ParentAccountHandler)

        resolve(IMutator).insert_all([account("Acme")])

        assert ParentAccountHandler.runs == 3
        assert store.count("Account") == 3

    def test_fresh_context_is_not_blocked(self):
        """Test that guard state does not leak between contexts."""
        with execution_context() as outer:
            assert outer.guard.try_enter(UpdateWatcher)
            with execution_context():
                records = [Record(id="ACC1", object_type="Account")]
                ran = dispatch(OperationKind.UPDATE, Phase.BEFORE, records, {}, UpdateWatcher())
            outer.guard.exit(UpdateWatcher)

        assert ran is True
        assert UpdateWatcher.seen == ["ACC1"]

    def test_failing_handler_leaves_guard_idle(self, store, context):
        """Test that an exception still releases the guard."""
        store.bind_trigger("Account", ExplodingHandler)

        with pytest.raises(HandlerError):
            resolve(IMutator).insert_all([account("Acme")])

        assert context.guard.state(ExplodingHandler) == GuardState.IDLE
        assert store.count("Account") == 0


class TestGuardGranularity:
    """The guard is keyed by handler type, not by the records being processed."""

    def test_other_handler_type_runs_on_same_records(self, store):
        """Test that a second handler type still sees an update caused mid-dispatch."""
        store.bind_trigger("Account", TouchingHandler)
        store.bind_trigger("Account", UpdateWatcher)
        records = [account("Acme"), account("Globex")]

        resolve(IMutator).insert_all(records)

        assert UpdateWatcher.seen == [record.id for record in records]
        stored = store.get_many([record.id for record in records])
        assert all(record.get("Touched") for record in stored.values())
