"""Status-flow definitions and the transition validator."""

from __future__ import annotations

from typing import Iterable

from .errors import InvalidStatusFlow, InvalidTransition, UnknownStatus

LOCALES = ("en", "fr", "ar")

# Out-of-band exits: reachable from any non-terminal state and never part of
# the ordered flow.
EXIT_STATUSES = ("rejected", "cancelled")

# Statuses the engine itself moves applications into.
LIFECYCLE_STATUSES = ("submitted", "payment_confirmed", "processing", "approved")

INITIAL_STATUS = "submitted"
PAYMENT_CONFIRMED_STATUS = "payment_confirmed"
CHECKPOINT_STATUS = "processing"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _localized(entry: dict, field: str, index: int, kind: str) -> dict[str, str]:
    base = entry.get(f"{field}_en")
    if not isinstance(base, str) or not base.strip():
        raise InvalidStatusFlow(f"{kind} #{index + 1} needs a non-empty {field}_en.")
    values = {}
    for locale in LOCALES:
        value = entry.get(f"{field}_{locale}")
        values[f"{field}_{locale}"] = (
            value.strip() if isinstance(value, str) and value.strip() else base.strip()
        )
    return values


def validate_status_flow(flow: object) -> list[dict]:
    """Return a normalized copy of ``flow`` or raise ``InvalidStatusFlow``."""

    if not isinstance(flow, list) or not flow:
        raise InvalidStatusFlow("status_flow must be a non-empty list.")

    normalized: list[dict] = []
    seen: set[str] = set()
    previous_order: int | None = None
    for index, entry in enumerate(flow):
        if not isinstance(entry, dict):
            raise InvalidStatusFlow(f"Status #{index + 1} must be an object.")

        status = entry.get("status")
        if not isinstance(status, str) or not status.strip():
            raise InvalidStatusFlow(f"Status #{index + 1} needs a status code.")
        status = status.strip()
        if status in EXIT_STATUSES:
            raise InvalidStatusFlow(
                f"'{status}' is an exit status and cannot appear in status_flow."
            )
        if status in seen:
            raise InvalidStatusFlow(f"Status '{status}' is declared twice.")

        order = entry.get("order")
        if not _is_int(order):
            raise InvalidStatusFlow(f"Status '{status}' needs an integer order.")
        if previous_order is not None and order <= previous_order:
            raise InvalidStatusFlow(
                "status_flow order values must be unique and strictly increasing."
            )

        seen.add(status)
        previous_order = order
        normalized.append(
            {"status": status, **_localized(entry, "name", index, "Status"), "order": order}
        )

    missing = [status for status in LIFECYCLE_STATUSES if status not in seen]
    if missing:
        raise InvalidStatusFlow(
            "status_flow is missing required statuses: {}.".format(", ".join(missing)),
            missing_statuses=missing,
        )
    return normalized


def validate_submission_steps(steps: object) -> list[dict]:
    """Return a normalized copy of ``steps`` or raise ``InvalidStatusFlow``."""

    if steps is None:
        return []
    if not isinstance(steps, list):
        raise InvalidStatusFlow("submission_steps must be a list.")

    normalized = []
    previous: int | None = None
    for index, entry in enumerate(steps):
        if not isinstance(entry, dict):
            raise InvalidStatusFlow(f"Step #{index + 1} must be an object.")
        number = entry.get("step_number")
        if not _is_int(number):
            raise InvalidStatusFlow(f"Step #{index + 1} needs an integer step_number.")
        if previous is not None and number <= previous:
            raise InvalidStatusFlow(
                "submission_steps step_number values must be unique and increasing."
            )
        previous = number
        step = {"step_number": number, **_localized(entry, "title", index, "Step")}
        for locale in LOCALES:
            description = entry.get(f"description_{locale}")
            step[f"description_{locale}"] = description if isinstance(description, str) else ""
        normalized.append(step)
    return normalized


def flow_orders(flow: Iterable[dict]) -> dict[str, int]:
    return {step["status"]: step["order"] for step in flow}


def terminal_statuses(flow: Iterable[dict]) -> set[str]:
    """The highest-ordered flow status plus the exits."""

    orders = flow_orders(flow)
    terminal = set(EXIT_STATUSES)
    if orders:
        terminal.add(max(orders, key=orders.__getitem__))
    return terminal


def check_transition(
    current: str | None,
    proposed: str,
    flow: list[dict],
    override: bool = False,
) -> None:
    """Raise unless moving from ``current`` to ``proposed`` is legal.

    Forward and same-state moves are legal. Exits are legal from
    non-terminal states. ``override`` permits backward moves and leaving a
    terminal state but never an undeclared status.
    """

    orders = flow_orders(flow)
    if proposed not in orders and proposed not in EXIT_STATUSES:
        raise UnknownStatus(
            f"Status '{proposed}' is not part of this visa type's status flow.",
            status=proposed,
        )

    if proposed == current or override:
        return

    if proposed in EXIT_STATUSES:
        if current in terminal_statuses(flow):
            raise InvalidTransition(
                f"Cannot move from terminal status '{current}' to '{proposed}'.",
                current_status=current,
                proposed_status=proposed,
            )
        return

    current_order = orders.get(current) if current is not None else None
    if current_order is None:
        raise InvalidTransition(
            f"Cannot move from '{current}' to '{proposed}' without override.",
            current_status=current,
            proposed_status=proposed,
        )
    if orders[proposed] < current_order:
        raise InvalidTransition(
            f"Cannot move backward from '{current}' to '{proposed}'.",
            current_status=current,
            proposed_status=proposed,
        )


def allowed_next_statuses(current: str, flow: list[dict]) -> list[str]:
    """Statuses reachable from ``current`` without override, in display order."""

    candidates = [step["status"] for step in flow] + list(EXIT_STATUSES)
    allowed = []
    for status in candidates:
        if status == current:
            continue
        try:
            check_transition(current, status, flow)
        except (InvalidTransition, UnknownStatus):
            continue
        allowed.append(status)
    return allowed
