"""Tests for the update-and-verify workflow."""

import httpx
import pytest

from ambassador_pointings.pointings import PointingsClient
from ambassador_pointings.prompts import SelectionError
from ambassador_pointings.workflow import (
    EMPTY_RESPONSE_MARKER,
    UpdateWorkflow,
    WorkflowState,
    validate_url,
)

from conftest import BASE_URL, FakeAmbassador, ScriptedPrompter, output_of


def _workflow(config, console, make_client, fake, answers):
    store = PointingsClient(make_client(fake), config)
    prompter = ScriptedPrompter(console, answers)
    return UpdateWorkflow(store, prompter, console), prompter


class TestValidateUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "http://new:9000",
            "https://svc-a.birdeye.internal:8443/api/v1",
            "http://10.0.0.5:8080/path?x=1&y=[2]#frag",
            "http://host_name",
        ],
    )
    def test_conforming_urls_pass(self, url: str) -> None:
        assert validate_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://host:21",
            "new:9000",
            "http://",
            "http://host with space",
            "http://host/path with space",
            "",
        ],
    )
    def test_unusual_urls_fail(self, url: str) -> None:
        assert not validate_url(url)


def test_successful_update_reports_updated(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}, {"svc-a": "http://new:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.RECONCILED_SUCCESS
    assert result.succeeded
    assert result.after_url == "http://new:9000"
    assert fake.posted_json() == [{"system": "svc-a", "url": "http://new:9000"}]
    assert fake.posts[0].headers["content-type"] == "application/json"
    text = output_of(console)
    assert "Updated: svc-a" in text
    assert "Before: http://old:9000" in text
    assert "After : http://new:9000" in text
    assert workflow.history == [
        WorkflowState.IDLE,
        WorkflowState.LISTED_BEFORE,
        WorkflowState.SELECTED,
        WorkflowState.EDITED,
        WorkflowState.VALIDATED,
        WorkflowState.CONFIRMED,
        WorkflowState.SUBMITTED,
        WorkflowState.LISTED_AFTER,
        WorkflowState.RECONCILED_SUCCESS,
    ]


def test_silent_non_application_is_a_mismatch(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "yes"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.RECONCILED_MISMATCH
    assert not result.succeeded
    assert result.after_url == "http://old:9000"
    text = output_of(console)
    assert "Update did not reflect as expected for svc-a" in text
    assert "Before: http://old:9000" in text
    assert "After : http://old:9000" in text


def test_service_missing_after_update_is_a_mismatch(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000", "svc-b": "http://b:1"}, {"svc-b": "http://b:1"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.RECONCILED_MISMATCH
    assert result.after_url == ""


def test_declining_confirmation_sends_no_update(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "n"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert not result.submitted
    assert len(fake.requests) == 1
    assert fake.posts == []
    assert "Aborted." in output_of(console)


def test_declining_unusual_url_sends_no_update(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, prompter = _workflow(config, console, make_client, fake, ["svc-a", "new:9000", "no"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert result.url_warning
    assert fake.posts == []
    assert "Warning: URL looks unusual: new:9000" in output_of(console)
    assert ("text", "Proceed anyway? [y/N]") in prompter.asked


def test_unusual_url_can_be_forced_through(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}, {"svc-a": "new:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "new:9000", "Y", "YES"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.RECONCILED_SUCCESS
    assert result.url_warning
    assert fake.posted_json() == [{"system": "svc-a", "url": "new:9000"}]


def test_conforming_url_skips_warning_gate(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}, {"svc-a": "http://new:9000"}])
    workflow, prompter = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    workflow.run(BASE_URL)

    assert ("text", "Proceed anyway? [y/N]") not in prompter.asked
    assert "URL looks unusual" not in output_of(console)


def test_empty_answer_keeps_current_url(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "", "y"])

    result = workflow.run(BASE_URL)

    assert result.pending is not None
    assert result.pending.new_url == "http://old:9000"
    assert result.state is WorkflowState.RECONCILED_SUCCESS


def test_failed_update_post_still_reconciles(config, console, make_client) -> None:
    fake = FakeAmbassador(
        [{"svc-a": "http://old:9000"}],
        update_status=500,
        update_body="boom",
    )
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.RECONCILED_MISMATCH
    assert result.response is not None
    assert not result.response.ok
    assert len(fake.gets) == 2
    text = output_of(console)
    assert "----- Raw update response -----" in text
    assert "Request failed (500): boom" in text


def test_post_rejected_but_applied_counts_as_success(config, console, make_client) -> None:
    fake = FakeAmbassador(
        [{"svc-a": "http://old:9000"}, {"svc-a": "http://new:9000"}],
        update_status=502,
        update_body="bad gateway",
    )
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    result = workflow.run(BASE_URL)

    assert result.succeeded


def test_empty_update_response_is_marked(config, console, make_client) -> None:
    fake = FakeAmbassador(
        [{"svc-a": "http://old:9000"}, {"svc-a": "http://new:9000"}],
        update_body="",
    )
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    workflow.run(BASE_URL)

    assert output_of(console).rstrip().endswith(EMPTY_RESPONSE_MARKER)


def test_initial_list_failure_aborts_before_prompting(config, console, make_client) -> None:
    fake = FakeAmbassador([httpx.Response(503, text="unavailable")])
    workflow, prompter = _workflow(config, console, make_client, fake, [])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert "GET list failed" in result.reason
    assert prompter.asked == []
    assert fake.posts == []


def test_initial_list_must_be_an_object(config, console, make_client) -> None:
    fake = FakeAmbassador([httpx.Response(200, json=["svc-a"])])
    workflow, _ = _workflow(config, console, make_client, fake, [])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert "expected an object" in result.reason


def test_second_list_failure_is_reported_separately(config, console, make_client) -> None:
    fake = FakeAmbassador(
        [{"svc-a": "http://old:9000"}, httpx.Response(500, text="down")],
        update_body="accepted",
    )
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-a", "http://new:9000", "y"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert result.reason.startswith("Second GET failed")
    assert result.submitted
    assert len(fake.posts) == 1
    assert "accepted" in output_of(console)


def test_cancelled_selection_aborts(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, [None])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert result.reason == "No selection."
    assert fake.posts == []


def test_out_of_range_selection_aborts(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, [SelectionError("Out of range.")])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert result.reason == "Out of range."


def test_selection_outside_listing_is_rejected(config, console, make_client) -> None:
    fake = FakeAmbassador([{"svc-a": "http://old:9000"}])
    workflow, _ = _workflow(config, console, make_client, fake, ["svc-z"])

    result = workflow.run(BASE_URL)

    assert result.state is WorkflowState.ABORTED
    assert fake.posts == []


def test_empty_listing_aborts(config, console, make_client) -> None:
    fake = FakeAmbassador([{}])
    workflow, prompter = _workflow(config, console, make_client, fake, [])

    result = workflow.run(BASE_URL)

    assert result.reason == "No services found."
    assert prompter.asked == []
