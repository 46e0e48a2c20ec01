"""Update-and-verify workflow for a single service pointing.

The workflow lists the current pointings, lets the operator pick and edit one,
gates the change behind confirmations, submits it, and then lists again. The
re-fetched value is the only success signal: the update call's own response
is shown to the operator but never trusted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .client import PointingsError, UpdateResponse
from .logging import get_logger
from .output import print_pointings
from .pointings import PointingsClient
from .prompts import Prompter, SelectionError

logger = get_logger("ambassador.workflow")

URL_PATTERN = re.compile(
    r"^https?://[A-Za-z0-9._:-]+(/[A-Za-z0-9._~:/?#\[\]@!$&()*+,;=%-]*)?$"
)

EMPTY_RESPONSE_MARKER = "<empty>"


def validate_url(url: str) -> bool:
    """Return True when `url` looks like scheme://host[:port][/path]."""

    return URL_PATTERN.match(url) is not None


class WorkflowState(Enum):
    IDLE = "idle"
    LISTED_BEFORE = "listed_before"
    SELECTED = "selected"
    EDITED = "edited"
    VALIDATED = "validated"
    CONFIRMED = "confirmed"
    SUBMITTED = "submitted"
    LISTED_AFTER = "listed_after"
    RECONCILED_SUCCESS = "reconciled_success"
    RECONCILED_MISMATCH = "reconciled_mismatch"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PendingUpdate:
    service: str
    old_url: str
    new_url: str


@dataclass(frozen=True)
class WorkflowResult:
    """Terminal state of one workflow run."""

    state: WorkflowState
    pending: Optional[PendingUpdate] = None
    after_url: Optional[str] = None
    response: Optional[UpdateResponse] = None
    reason: str = ""
    url_warning: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state is WorkflowState.RECONCILED_SUCCESS

    @property
    def submitted(self) -> bool:
        return self.response is not None


class UpdateWorkflow:
    """Drive one select → edit → validate → confirm → submit → verify cycle."""

    def __init__(
        self,
        store: PointingsClient,
        prompter: Prompter,
        console: Console,
        output: str = "table",
    ) -> None:
        self.store = store
        self.prompter = prompter
        self.console = console
        self.output = output
        self.state = WorkflowState.IDLE
        self.history: List[WorkflowState] = [WorkflowState.IDLE]

    def _advance(self, state: WorkflowState) -> None:
        logger.debug("Workflow transition", extra={"from_state": self.state.value, "to_state": state.value})
        self.state = state
        self.history.append(state)

    def _abort(
        self,
        reason: str,
        error: bool = False,
        pending: Optional[PendingUpdate] = None,
        response: Optional[UpdateResponse] = None,
        url_warning: bool = False,
    ) -> WorkflowResult:
        if error:
            self.console.print(f"[red]Error: {escape(reason)}[/]")
        else:
            self.console.print(f"[yellow]{escape(reason)}[/]")
        self._advance(WorkflowState.ABORTED)
        logger.info("Update workflow aborted", extra={"reason": reason})
        return WorkflowResult(
            state=WorkflowState.ABORTED,
            pending=pending,
            response=response,
            reason=reason,
            url_warning=url_warning,
        )

    def run(self, base_url: str) -> WorkflowResult:
        self.state = WorkflowState.IDLE
        self.history = [WorkflowState.IDLE]

        self.console.print("Fetching current pointings...")
        try:
            before = self.store.list_pointings(base_url)
        except PointingsError as exc:
            return self._abort(f"GET list failed. {exc}", error=True)
        self._advance(WorkflowState.LISTED_BEFORE)
        if not before:
            return self._abort("No services found.", error=True)

        self.console.print()
        self.console.print("Current pointings:")
        print_pointings(self.console, before, self.output)

        try:
            service = self.prompter.select_one("Pick service", list(before))
        except SelectionError as exc:
            return self._abort(str(exc), error=True)
        if service is None or service not in before:
            return self._abort("No selection.", error=True)
        current_url = before[service]
        self._advance(WorkflowState.SELECTED)

        new_url = self.prompter.prompt_text(f"New URL for {service}", current_url)
        pending = PendingUpdate(service=service, old_url=current_url, new_url=new_url)
        self._advance(WorkflowState.EDITED)

        url_warning = not validate_url(new_url)
        if url_warning:
            self.console.print(f"[yellow]Warning: URL looks unusual: {escape(new_url)}[/]")
            if not self.prompter.confirm("Proceed anyway?"):
                return self._abort("Aborted.", pending=pending, url_warning=True)
        self._advance(WorkflowState.VALIDATED)

        self.console.print()
        self.console.print(f"System : {escape(service)}", highlight=False)
        self.console.print(f"Old URL: {escape(current_url)}", highlight=False)
        self.console.print(f"New URL: {escape(new_url)}", highlight=False)
        if not self.prompter.confirm("Proceed with update?"):
            return self._abort("Aborted.", pending=pending, url_warning=url_warning)
        self._advance(WorkflowState.CONFIRMED)

        self.console.print("Updating...")
        response = self.store.update_mapping(base_url, service, new_url)
        self._advance(WorkflowState.SUBMITTED)

        self.console.print("Re-fetching...")
        try:
            after = self.store.list_pointings(base_url)
        except PointingsError as exc:
            result = self._abort(
                f"Second GET failed. {exc}",
                error=True,
                pending=pending,
                response=response,
                url_warning=url_warning,
            )
            self._print_raw_response(response)
            return result
        self._advance(WorkflowState.LISTED_AFTER)

        after_url = after.get(service, "")
        matched = after_url == new_url
        self.console.print()
        self.console.print("----- Result -----")
        if matched:
            self.console.print(f"[green]✅ Updated: {escape(service)}[/]")
        else:
            self.console.print(f"[yellow]⚠️  Update did not reflect as expected for {escape(service)}[/]")
        self.console.print(f"Before: {escape(current_url)}", highlight=False)
        self.console.print(f"After : {escape(after_url)}", highlight=False)
        self._print_raw_response(response)

        state = WorkflowState.RECONCILED_SUCCESS if matched else WorkflowState.RECONCILED_MISMATCH
        self._advance(state)
        logger.info(
            "Update reconciled",
            extra={
                "service": service,
                "expected_url": new_url,
                "actual_url": after_url,
                "matched": matched,
                "update_ok": response.ok,
            },
        )
        return WorkflowResult(
            state=state,
            pending=pending,
            after_url=after_url,
            response=response,
            url_warning=url_warning,
        )

    def _print_raw_response(self, response: UpdateResponse) -> None:
        self.console.print()
        self.console.print("----- Raw update response -----")
        body = response.body.strip("\n")
        self.console.print(body if body else EMPTY_RESPONSE_MARKER, markup=False, highlight=False)
