# pawfence/Services/geofence_core/evaluator.py
"""
Geofence Evaluator
==================
Decides, for one location sample, the new containment status of a dog
relative to each of its boundaries and whether a notification must fire.

Decision matrix per boundary (previous → current):

    unknown → inside | outside   baseline, no transition
    inside  → outside            EXIT transition
    outside → inside             ENTRY transition
    unchanged                    no-op

Aggregate (any-boundary semantics, a dog is safe while inside any of its
boundaries):

    inside ≥ 1 before, inside 0 now   → one "left" notification
    inside 0 before, inside ≥ 1 now   → one "back" notification, only when
                                        the policy enables entry alerts

A dog without boundaries is not evaluated. Malformed boundaries are logged,
skipped and left out of the aggregate; their previous state row is carried
over untouched. State rows of boundaries missing from the snapshot are
dropped.

`evaluate` is a pure function of its arguments: the same sample against the
same prior state always yields an equal EvaluationResult.
"""

from typing import List, Mapping, Optional

from pawfence.Core import log_ws
from pawfence.Core.errors import MalformedBoundary
from pawfence.Services.geofence_core.boundary_set import BoundarySet
from pawfence.Services.geofence_core.geometry import check_polygon, contains
from pawfence.Services.geofence_core.types import (
    ContainmentStateMap,
    ContainmentStatus,
    EntityContainmentState,
    EvaluationResult,
    LocationSample,
    NotificationEvent,
    NotificationPolicy,
    Transition,
    TransitionKind,
)


def classify_transition(
    previous: ContainmentStatus, current: ContainmentStatus
) -> Optional[TransitionKind]:
    """Return the transition between two statuses, or None if there is none."""
    if previous is ContainmentStatus.INSIDE and current is ContainmentStatus.OUTSIDE:
        return TransitionKind.EXIT
    if previous is ContainmentStatus.OUTSIDE and current is ContainmentStatus.INSIDE:
        return TransitionKind.ENTRY
    return None


class GeofenceEvaluator:
    """
    Evaluates location samples against a dog's boundary snapshot.

    The policy only decides which aggregate transitions become
    notifications; per-boundary transitions are always reported in the
    result.
    """

    def __init__(self, policy: Optional[NotificationPolicy] = None):
        self.policy = policy or NotificationPolicy()

    def evaluate(
        self,
        sample: LocationSample,
        boundaries: BoundarySet,
        prior_state: Mapping[str, EntityContainmentState],
    ) -> EvaluationResult:
        entity_id = sample.entity_id
        polygons = sorted(boundaries.boundaries_for(entity_id), key=lambda p: p.boundary_id)

        if not polygons:
            return EvaluationResult(state={}, evaluated=False)

        new_state: ContainmentStateMap = {}
        transitions: List[Transition] = []
        skipped: List[str] = []
        inside_now: List[str] = []
        was_inside_any = False

        for polygon in polygons:
            boundary_id = polygon.boundary_id
            prior = prior_state.get(boundary_id)

            try:
                check_polygon(polygon)
            except MalformedBoundary as exc:
                log_ws.log_from_thread(
                    f"[EVALUATOR] Skipping boundary '{boundary_id}' of dog '{entity_id}': {exc.reason}",
                    msg_type="warning",
                )
                skipped.append(boundary_id)
                if prior is not None:
                    new_state[boundary_id] = prior
                continue

            previous = prior.last_status if prior is not None else ContainmentStatus.UNKNOWN
            if contains(sample.coordinate, polygon):
                current = ContainmentStatus.INSIDE
                inside_now.append(boundary_id)
            else:
                current = ContainmentStatus.OUTSIDE

            if previous is ContainmentStatus.INSIDE:
                was_inside_any = True

            kind = classify_transition(previous, current)
            if kind is not None:
                transitions.append(Transition(boundary_id, kind, previous, current))

            new_state[boundary_id] = EntityContainmentState(
                entity_id=entity_id,
                boundary_id=boundary_id,
                last_status=current,
                last_evaluated_at=sample.received_at,
            )

        events = self._aggregate(sample, transitions, was_inside_any, bool(inside_now))

        for transition in transitions:
            action = "EXITED" if transition.kind is TransitionKind.EXIT else "ENTERED"
            log_ws.log_from_thread(
                f"[EVALUATOR] Dog '{entity_id}' {action} boundary '{transition.boundary_id}'",
                msg_type="log",
            )

        return EvaluationResult(
            state=new_state,
            events=tuple(events),
            transitions=tuple(transitions),
            skipped=tuple(skipped),
            inside=tuple(inside_now),
        )

    def _aggregate(
        self,
        sample: LocationSample,
        transitions: List[Transition],
        was_inside_any: bool,
        is_inside_any: bool,
    ) -> List[NotificationEvent]:
        policy = self.policy

        if was_inside_any and not is_inside_any:
            if not policy.notify_on_exit:
                return []
            exited = [t.boundary_id for t in transitions if t.kind is TransitionKind.EXIT]
            return [
                NotificationEvent(
                    entity_id=sample.entity_id,
                    boundary_id=exited[0] if len(exited) == 1 else None,
                    message=policy.exit_message,
                    triggered_at=sample.observed_at,
                    kind=TransitionKind.EXIT,
                )
            ]

        entered = [t.boundary_id for t in transitions if t.kind is TransitionKind.ENTRY]
        if policy.notify_on_entry and not was_inside_any and entered:
            return [
                NotificationEvent(
                    entity_id=sample.entity_id,
                    boundary_id=entered[0] if len(entered) == 1 else None,
                    message=policy.entry_message,
                    triggered_at=sample.observed_at,
                    kind=TransitionKind.ENTRY,
                )
            ]

        return []
