"""Unit tests for LifecycleEventRouter."""

import pytest

from heimdall_ltf.application.context import execution_context
from heimdall_ltf.application.router import HANDLER_METHODS, LifecycleEventRouter, dispatch
from heimdall_ltf.domain import (
    GuardState,
    HandlerError,
    ILifecycleHandler,
    LifecycleEvent,
    OperationKind,
    Phase,
    Record,
)


class RecordingHandler(ILifecycleHandler):
    """Handler that records every call it receives."""

    def __init__(self):
        self.calls = []

    def _record(self, name, new_records, old_records_by_id):
        self.calls.append((name, list(new_records), dict(old_records_by_id)))

    def before_insert(self, new_records, old_records_by_id):
        self._record("before_insert", new_records, old_records_by_id)

    def before_update(self, new_records, old_records_by_id):
        self._record("before_update", new_records, old_records_by_id)

    def before_delete(self, new_records, old_records_by_id):
        self._record("before_delete", new_records, old_records_by_id)

    def after_insert(self, new_records, old_records_by_id):
        self._record("after_insert", new_records, old_records_by_id)

    def after_update(self, new_records, old_records_by_id):
        self._record("after_update", new_records, old_records_by_id)

    def after_delete(self, new_records, old_records_by_id):
        self._record("after_delete", new_records, old_records_by_id)

    def after_undelete(self, new_records, old_records_by_id):
        self._record("after_undelete", new_records, old_records_by_id)


class FailingHandler(ILifecycleHandler):
    def after_insert(self, new_records, old_records_by_id):
        raise HandlerError("duplicate account name")


def make_records(count):
    return [Record(id=f"ACC{index}", object_type="Account") for index in range(count)]


class TestRegistrationTable:
    """Test cases for the fixed handler registration table."""

    def test_table_has_seven_combinations(self):
        """Test that exactly seven phase/operation pairs are routed."""
        assert len(HANDLER_METHODS) == 7
        assert (Phase.BEFORE, OperationKind.UNDELETE) not in HANDLER_METHODS

    @pytest.mark.parametrize("key,method_name", sorted(HANDLER_METHODS.items()))
    def test_each_combination_reaches_its_method(self, key, method_name):
        """Test that every combination dispatches to the matching method."""
        phase, operation = key
        handler = RecordingHandler()

        ran = LifecycleEventRouter().dispatch(LifecycleEvent(operation_kind=operation, phase=phase), handler)

        assert ran is True
        assert [call[0] for call in handler.calls] == [method_name]

    def test_unknown_combination_is_a_no_op(self):
        """Test that before-undelete is ignored without error."""
        handler = RecordingHandler()
        event = LifecycleEvent(operation_kind=OperationKind.UNDELETE, phase=Phase.BEFORE, new_records=make_records(1))

        assert LifecycleEventRouter().dispatch(event, handler) is False
        assert handler.calls == []


class TestBulkDispatch:
    """Test cases for once-per-batch dispatch."""

    @pytest.mark.parametrize("count", [0, 1, 200])
    def test_handler_called_once_per_batch(self, count):
        """Test that a batch of N records produces exactly one call."""
        handler = RecordingHandler()
        records = make_records(count)

        dispatch(OperationKind.INSERT, Phase.AFTER, records, {}, handler)

        assert len(handler.calls) == 1
        assert handler.calls[0][1] == records

    def test_old_records_are_passed_through(self):
        """Test that old records reach the handler keyed by id."""
        handler = RecordingHandler()
        new = make_records(2)
        old = {record.id: record.clone() for record in new}

        dispatch(OperationKind.UPDATE, Phase.BEFORE, new, old, handler)

        assert handler.calls[0][2] == old

    def test_before_phase_changes_are_visible_to_caller(self):
        """Test that in-place changes to the batch reach the host's records."""

        class DefaultingHandler(ILifecycleHandler):
            def before_insert(self, new_records, old_records_by_id):
                for record in new_records:
                    record.put("Rating", "Warm")

        records = [Record(object_type="Account"), Record(object_type="Account")]

        dispatch(OperationKind.INSERT, Phase.BEFORE, records, {}, DefaultingHandler())

        assert [record.get("Rating") for record in records] == ["Warm", "Warm"]


class TestGuardInteraction:
    """Test cases for recursion guard handling inside dispatch."""

    def test_guard_released_after_dispatch(self, context):
        """Test that the guard returns to idle once dispatch completes."""
        dispatch(OperationKind.INSERT, Phase.AFTER, make_records(1), {}, RecordingHandler())

        assert context.guard.state(RecordingHandler) == GuardState.IDLE

    def test_guard_released_after_failure(self, context):
        """Test that a failing handler does not leave the guard locked."""
        with pytest.raises(HandlerError):
            dispatch(OperationKind.INSERT, Phase.AFTER, make_records(1), {}, FailingHandler())

        assert context.guard.state(FailingHandler) == GuardState.IDLE

    def test_domain_error_propagates_unchanged(self):
        """Test that handler errors reach the caller as raised."""
        with pytest.raises(HandlerError, match="duplicate account name") as exc_info:
            dispatch(OperationKind.INSERT, Phase.AFTER, make_records(1), {}, FailingHandler())

        assert type(exc_info.value) is HandlerError

    def test_reentrant_dispatch_is_skipped(self, context):
        """Test that a handler re-entering itself is skipped."""
        inner_results = []

        class ReentrantHandler(ILifecycleHandler):
            runs = 0

            def after_update(self, new_records, old_records_by_id):
                ReentrantHandler.runs += 1
                inner_results.append(
                    dispatch(OperationKind.UPDATE, Phase.AFTER, new_records, old_records_by_id, ReentrantHandler())
                )

        dispatch(OperationKind.UPDATE, Phase.AFTER, make_records(3), {}, ReentrantHandler())

        assert ReentrantHandler.runs == 1
        assert inner_results == [False]
        assert context.guard.state(ReentrantHandler) == GuardState.IDLE

    def test_allowed_nested_dispatch_runs(self, context):
        """Test that the allow-nested override lets a handler re-enter."""

        class ChainHandler(ILifecycleHandler):
            depth = 0

            def after_update(self, new_records, old_records_by_id):
                ChainHandler.depth += 1
                if ChainHandler.depth < 3:
                    dispatch(OperationKind.UPDATE, Phase.AFTER, new_records, {}, ChainHandler())

        context.guard.allow_nested(ChainHandler)

        dispatch(OperationKind.UPDATE, Phase.AFTER, make_records(1), {}, ChainHandler())

        assert ChainHandler.depth == 3
        assert context.guard.state(ChainHandler) == GuardState.IDLE

    def test_bypassed_handler_is_skipped(self, context):
        """Test that bypassed handler types are not called."""
        handler = RecordingHandler()
        context.bypass(RecordingHandler)

        assert dispatch(OperationKind.INSERT, Phase.AFTER, make_records(1), {}, handler) is False
        assert handler.calls == []

    def test_router_bound_to_explicit_context(self):
        """Test that a router built with a context uses that context's guard."""
        with execution_context() as other:
            pass
        router = LifecycleEventRouter(other)
        other.guard.try_enter(RecordingHandler)

        handler = RecordingHandler()
        event = LifecycleEvent(operation_kind=OperationKind.INSERT, phase=Phase.AFTER)

        assert router.dispatch(event, handler) is False
        assert LifecycleEventRouter().dispatch(event, handler) is True
