"""
Redirect graph resolver.

Decides what a slug change old_slug -> new_slug does to the redirect set.
The decision table is evaluated top to bottom and the first terminal branch
wins:

1. UNCHANGED           old_slug == new_slug, nothing to do
2. ALREADY_REDIRECTED  an active redirect leaves old_path already
3. chain resolution    active redirects landing on old_path now land on
                       new_path, except one leaving new_path (self-loop)
4. SELF_REFERENCE      old_path == new_path after mapping
5a. shadow retirement  other active redirects leaving new_path are switched
                       off: new_path serves live content again
5. REVERSED            an active new_path -> old_path exists and is flipped
                       in place to old_path -> new_path
6. CREATED             new active old_path -> new_path

Every redirect landing on old_path is repointed at each move, so chains
never grow past one hop, and nothing is left leaving new_path, so no two
active redirects can point at each other.

plan_reconcile is pure; load_snapshot does the reads it needs.
"""

from __future__ import annotations

from autoredirect.components.redirects import (
    RedirectFilter,
    RedirectStorePort,
    append_note,
    find_by_path,
    find_by_target,
    find_reverse,
)

from .models import (
    CreateRedirectWrite,
    Decision,
    ReconcilePlan,
    RedirectSnapshot,
    RedirectWrite,
    UpdateRedirectWrite,
)

# --- Annotations ---


def chain_note(display_name: str, new_slug: str) -> str:
    return f'(Chain resolved: {display_name} slug changed to "{new_slug}")'


def reversed_note(display_name: str, old_slug: str, new_slug: str) -> str:
    return f'(Updated direction: {display_name} slug changed from "{old_slug}" to "{new_slug}")'


def shadow_note(display_name: str, new_slug: str) -> str:
    return f'(Deactivated: path now serves {display_name} "{new_slug}")'


def created_description(display_name: str, old_slug: str, new_slug: str) -> str:
    return f'Auto-generated: {display_name} slug changed from "{old_slug}" to "{new_slug}"'


# --- Reads ---


async def load_snapshot(
    store: RedirectStorePort,
    old_path: str,
    new_path: str,
) -> RedirectSnapshot:
    """Read the redirects a move from old_path to new_path can touch."""
    direct = await find_by_path(store, old_path)
    if direct is not None:
        # Branch 2 ends the decision; nothing else is needed.
        return RedirectSnapshot(old_path=old_path, new_path=new_path, direct=direct)

    predecessors = await find_by_target(store, old_path)
    shadows = await store.find_many(RedirectFilter(from_path=new_path, is_active=True))
    reverse = await find_reverse(store, new_path, old_path)
    return RedirectSnapshot(
        old_path=old_path,
        new_path=new_path,
        predecessors=tuple(predecessors),
        shadows=tuple(shadows),
        reverse=reverse,
    )


# --- Decision ---


def plan_reconcile(
    snapshot: RedirectSnapshot,
    *,
    old_slug: str,
    new_slug: str,
    display_name: str,
    status_code: int = 301,
    priority: int = 100,
) -> ReconcilePlan:
    """Map a redirect snapshot to the ordered writes for one slug change."""
    old_path = snapshot.old_path
    new_path = snapshot.new_path

    if old_slug == new_slug:
        return ReconcilePlan(decision=Decision.UNCHANGED)

    if snapshot.direct is not None:
        return ReconcilePlan(decision=Decision.ALREADY_REDIRECTED)

    writes: list[RedirectWrite] = []
    skipped = []
    reverse = snapshot.reverse

    for predecessor in snapshot.predecessors:
        if reverse is not None and predecessor.id == reverse.id:
            # flipped below
            continue
        if predecessor.from_path == new_path:
            skipped.append(predecessor)
            continue
        if predecessor.to_path == new_path:
            continue
        writes.append(
            UpdateRedirectWrite(
                redirect_id=predecessor.id,
                changes={
                    "to_path": new_path,
                    "description": append_note(
                        predecessor.description, chain_note(display_name, new_slug)
                    ),
                },
                reason="chain",
            )
        )

    if old_path == new_path:
        return ReconcilePlan(
            decision=Decision.SELF_REFERENCE,
            writes=tuple(writes),
            skipped=tuple(skipped),
        )

    for shadow in snapshot.shadows:
        if reverse is not None and shadow.id == reverse.id:
            continue
        writes.append(
            UpdateRedirectWrite(
                redirect_id=shadow.id,
                changes={
                    "is_active": False,
                    "description": append_note(
                        shadow.description, shadow_note(display_name, new_slug)
                    ),
                },
                reason="shadow",
            )
        )

    if reverse is not None:
        writes.append(
            UpdateRedirectWrite(
                redirect_id=reverse.id,
                changes={
                    "from_path": old_path,
                    "to_path": new_path,
                    "description": append_note(
                        reverse.description, reversed_note(display_name, old_slug, new_slug)
                    ),
                },
                reason="reverse",
            )
        )
        return ReconcilePlan(
            decision=Decision.REVERSED,
            writes=tuple(writes),
            skipped=tuple(skipped),
        )

    writes.append(
        CreateRedirectWrite(
            from_path=old_path,
            to_path=new_path,
            status_code=status_code,
            priority=priority,
            description=created_description(display_name, old_slug, new_slug),
        )
    )
    return ReconcilePlan(
        decision=Decision.CREATED,
        writes=tuple(writes),
        skipped=tuple(skipped),
    )
