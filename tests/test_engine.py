"""Tests for inference passes, parse limits, outcomes and cancellation."""

import asyncio
import json
import threading
import time

import pytest

from json_typegen.config import MAX_NESTING_DEPTH, ParserSettings
from json_typegen.exceptions import DepthExceededError, InferenceCancelledError, InternalInvariantViolation, ParseError
from json_typegen.inference import (
    INTEGER,
    ArrayType,
    CancellationToken,
    InferenceRunner,
    ObjectType,
    OutcomeStatus,
    infer_tree,
    run_inference,
    split_qualified_name,
)
from json_typegen.inference import engine
from json_typegen.parsing import check_nesting_depth, parse_document

ORDER = {
    "id": 1001,
    "customer": {"name": "Ada", "email": "ada@example.com"},
    "lines": [
        {"sku": "A-1", "qty": 2, "price": 9.5, "tags": ["gift"]},
        {"sku": "B-7", "qty": 1, "price": 12, "discount": {"code": "X"}},
    ],
    "notes": [],
}


def _deep(levels: int) -> dict:
    value: dict = {"leaf": 1}
    for _ in range(levels - 1):
        value = {"child": value}
    return value


class TestSplitQualifiedName:
    def test_namespace_and_name(self):
        assert split_qualified_name("MyApp.Models.Order") == ("MyApp.Models", "Order")

    def test_bare_name(self):
        assert split_qualified_name("Order") == ("", "Order")

    def test_missing_name_rejected(self):
        with pytest.raises(ValueError):
            split_qualified_name("MyApp.")


class TestParseDocument:
    def test_strict_json(self):
        assert parse_document('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_malformed_json(self):
        with pytest.raises(ParseError):
            parse_document('{"a": ')

    def test_root_must_be_object(self):
        with pytest.raises(ParseError, match="must be an object"):
            parse_document("[1, 2]")

    def test_comments_and_trailing_commas_rejected_by_default(self):
        with pytest.raises(ParseError):
            parse_document('{"a": 1, // note\n "b": [1, 2,],}', ParserSettings())

    def test_comments_and_trailing_commas_when_allowed(self):
        options = ParserSettings(allow_comments=True, allow_trailing_commas=True)

        assert parse_document('{"a": 1, /* x */ "b": [1, 2,],}', options) == {"a": 1, "b": [1, 2]}

    def test_duplicate_keys_last_wins(self):
        assert parse_document('{"a": 1, "a": "x"}') == {"a": "x"}

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_constants_rejected(self, constant):
        with pytest.raises(ParseError, match="not a valid JSON value"):
            parse_document(f'{{"x": {constant}}}')

    def test_depth_limit(self):
        options = ParserSettings(max_nesting_depth=3)

        parse_document(json.dumps(_deep(3)), options)
        with pytest.raises(DepthExceededError):
            parse_document(json.dumps(_deep(4)), options)

    def test_check_nesting_depth_counts_arrays(self):
        assert check_nesting_depth({"a": [[1]]}, 10) == 3
        assert check_nesting_depth("scalar", 10) == 0


class TestInferTree:
    def test_order_document(self):
        tree = infer_tree(json.dumps(ORDER), "Order", "Shop")

        root = tree.root
        assert tree.qualified_name == "Shop.Order"
        assert root.keys() == ["id", "customer", "lines", "notes"]
        assert root.get("id") == INTEGER
        assert root.get("notes").element.kind.value == "opaque"

        line = root.get("lines").element
        assert isinstance(line, ObjectType)
        # "tags" and "discount" are only present on one line each
        assert line.keys() == ["sku", "qty", "price"]
        assert line.get("price").kind.value == "float"
        assert [sub.name for sub in root.subtypes] == ["Customer", "LinesElement"]
        assert [obj.name for obj in tree.iter_objects()] == ["Order", "Customer", "LinesElement"]

    def test_accepts_decoded_objects(self):
        assert infer_tree(ORDER, "Order") == infer_tree(json.dumps(ORDER), "Order")

    def test_deterministic_across_key_order(self):
        forward = '{"a": 1, "b": {"c": 2, "d": ["x"]}, "e": [{"f": 1, "g": 2}]}'
        backward = '{"e": [{"g": 2, "f": 1}], "b": {"d": ["y"], "c": 5}, "a": 7}'

        assert infer_tree(forward, "Root").root == infer_tree(backward, "Root").root
        assert infer_tree(forward, "Root") == infer_tree(forward, "Root")

    def test_depth_mismatch_between_siblings(self):
        tree = infer_tree('{"xs": [{"v": 5}, {"v": [5]}]}', "Root")

        assert tree.root.get("xs").element.get("v").kind.value == "opaque"

    def test_empty_root_object(self):
        tree = infer_tree("{}", "Empty")

        assert tree.root.is_empty
        assert tree.object_count == 1

    def test_empty_root_name_rejected(self):
        with pytest.raises(ValueError):
            infer_tree("{}", "")

    def test_internal_violation_propagates(self):
        with pytest.raises(InternalInvariantViolation):
            run_inference({"bad": {1, 2}}, "Root")


class TestRunInference:
    def test_success_outcome(self):
        outcome = run_inference('{"xs": [1, 2, 3]}', "Root")

        assert outcome.status is OutcomeStatus.SUCCEEDED
        assert outcome.ok
        assert outcome.error is None
        assert outcome.unwrap().root.get("xs") == ArrayType(INTEGER)

    def test_parse_error_outcome(self):
        outcome = run_inference("{not json", "Root")

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.tree is None
        assert isinstance(outcome.error, ParseError)
        with pytest.raises(ParseError):
            outcome.unwrap()

    def test_depth_exceeded_outcome(self):
        outcome = run_inference(json.dumps(_deep(10)), "Root", parser=ParserSettings(max_nesting_depth=5))

        assert outcome.status is OutcomeStatus.FAILED
        assert isinstance(outcome.error, DepthExceededError)

    def test_deepest_allowed_document_succeeds(self):
        parser = ParserSettings(max_nesting_depth=MAX_NESTING_DEPTH)

        assert run_inference(json.dumps(_deep(MAX_NESTING_DEPTH)), "Root", parser=parser).ok

    def test_nesting_past_the_recursion_limit_is_an_outcome(self):
        # model_copy skips validation, so the configured limit sits above what the builder can recurse
        parser = ParserSettings().model_copy(update={"max_nesting_depth": 5000})

        outcome = run_inference(_deep(2000), "Root", parser=parser)

        assert outcome.status is OutcomeStatus.FAILED
        assert isinstance(outcome.error, DepthExceededError)
        assert outcome.tree is None

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()

        outcome = run_inference(json.dumps(ORDER), "Order", token=token)

        assert outcome.status is OutcomeStatus.CANCELLED
        assert outcome.tree is None
        assert isinstance(outcome.error, InferenceCancelledError)


class TestCancellationPoints:
    def test_cancelling_at_any_checkpoint_yields_no_tree(self, counting_token):
        document = json.dumps(ORDER)
        counter = counting_token()
        assert run_inference(document, "Order", token=counter).ok
        assert counter.checks > 5

        for cancel_at in range(counter.checks):
            outcome = run_inference(document, "Order", token=counting_token(cancel_at))
            assert outcome.status is OutcomeStatus.CANCELLED, cancel_at
            assert outcome.tree is None

    def test_cancellation_inside_unification(self, counting_token):
        from json_typegen.inference import unify_objects

        token = counting_token(cancel_at=0)
        first = ObjectType(name="A", depth=0, properties=(("a", INTEGER),))

        with pytest.raises(InferenceCancelledError):
            unify_objects([first, first], token)


class TestInferenceRunner:
    @pytest.mark.anyio
    async def test_run_returns_outcome(self):
        runner = InferenceRunner("doc-1")

        outcome = await runner.run('{"a": 1}', "Root")

        assert outcome.ok
        assert not runner.running

    @pytest.mark.anyio
    async def test_newer_pass_cancels_previous(self, monkeypatch):
        started = threading.Event()
        real_run = engine.run_inference
        calls = []

        def blocking_run(document, root_name, namespace="", *, parser=None, token):
            calls.append(root_name)
            if len(calls) == 1:
                started.set()
                deadline = time.monotonic() + 5
                while not token.cancelled and time.monotonic() < deadline:
                    time.sleep(0.001)
            return real_run(document, root_name, namespace, parser=parser, token=token)

        monkeypatch.setattr(engine, "run_inference", blocking_run)
        runner = InferenceRunner("doc-1")

        first = asyncio.create_task(runner.run('{"a": 1}', "First"))
        await asyncio.to_thread(started.wait, 5)
        second = await runner.run('{"b": 2}', "Second")
        first_outcome = await first

        assert first_outcome.status is OutcomeStatus.CANCELLED
        assert second.ok
        assert second.unwrap().root.name == "Second"
        assert not runner.running

    @pytest.mark.anyio
    async def test_runners_for_different_documents_are_independent(self):
        runners = [InferenceRunner(f"doc-{i}") for i in range(3)]

        outcomes = await asyncio.gather(*(r.run(json.dumps({"i": i}), f"R{i}") for i, r in enumerate(runners)))

        assert all(outcome.ok for outcome in outcomes)
        assert [o.unwrap().root.name for o in outcomes] == ["R0", "R1", "R2"]

    def test_cancel_when_idle(self):
        assert InferenceRunner().cancel() is False
