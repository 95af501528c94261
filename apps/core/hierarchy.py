"""
Organization Hierarchy Traversal for MediCRM.

Organizations form a forest through parent_organization_id. These helpers
resolve downlines (an org plus every descendant) and uplines (the parent
chain to the root) with recursive CTEs built through django-cte 2.0.

Traversal is capped at REPORT_MAX_ORG_DEPTH levels. The stored graph is
expected to be acyclic; if a node is reached twice the result is
deduplicated and a warning is logged.
"""
import logging
from uuid import UUID

from django.conf import settings
from django.db.models import ExpressionWrapper, IntegerField, Value
from django_cte import CTE, with_cte

from .models import Organization, OrganizationMember

logger = logging.getLogger(__name__)

MAX_ORG_DEPTH = 50


def _max_depth() -> int:
    return int(getattr(settings, 'REPORT_MAX_ORG_DEPTH', MAX_ORG_DEPTH))


def _as_uuid(value) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _next_depth(cte):
    return ExpressionWrapper(cte.col.depth + Value(1), output_field=IntegerField())


def _dedupe_walk(rows: list[tuple], origin: UUID, direction: str, max_depth: int) -> list[UUID]:
    """
    Collapse (id, depth) rows to distinct ids ordered by first depth seen.

    The CTE walks one level past max_depth; rows from that level are
    dropped and only their presence triggers the depth-cap warning.
    """
    beyond_cap = [row for row in rows if row[1] > max_depth]
    rows = [row for row in rows if row[1] <= max_depth]

    seen: dict[UUID, int] = {}
    for raw_id, depth in rows:
        org_id = _as_uuid(raw_id)
        if org_id in seen:
            continue
        seen[org_id] = depth

    if len(seen) < len(rows):
        logger.warning(
            f'Cycle detected in organization {direction} of {origin}: '
            f'{len(rows) - len(seen)} repeated node(s)'
        )
    if beyond_cap:
        logger.warning(
            f'Organization {direction} of {origin} reached depth cap {max_depth}'
        )

    return sorted(seen, key=lambda org_id: seen[org_id])


def resolve_downline_org_ids(root_org_id: UUID) -> list[UUID]:
    """
    Get the root organization followed by every descendant.

    Ids are ordered by depth (root first). Returns an empty list when the
    root organization does not exist.
    """
    max_depth = _max_depth()

    def make_cte(cte):
        base = (
            Organization.objects
            .filter(id=root_org_id)
            .annotate(depth=Value(0, output_field=IntegerField()))
            .values('id', 'depth')
        )
        recursive = (
            cte.join(Organization, parent_organization_id=cte.col.id)
            .annotate(depth=_next_depth(cte))
            .filter(depth__lte=max_depth + 1)
            .values('id', 'depth')
        )
        return base.union(recursive, all=True)

    cte = CTE.recursive(make_cte)
    rows = list(
        with_cte(cte, select=cte.join(Organization, id=cte.col.id))
        .annotate(walk_depth=cte.col.depth)
        .order_by('walk_depth')
        .values_list('id', 'walk_depth')
    )
    return _dedupe_walk(rows, root_org_id, 'downline', max_depth)


def resolve_downline_agent_ids(root_org_id: UUID) -> list[UUID]:
    """
    Get the distinct user ids of active members of any org in the downline.

    The result is sorted so that it does not depend on membership creation
    order.
    """
    org_ids = resolve_downline_org_ids(root_org_id)
    if not org_ids:
        return []

    user_ids = (
        OrganizationMember.objects
        .filter(organization_id__in=org_ids, status='active')
        .values_list('user_id', flat=True)
        .distinct()
    )
    return sorted({_as_uuid(user_id) for user_id in user_ids}, key=str)


def get_upline_org_ids(org_id: UUID, include_self: bool = False) -> list[UUID]:
    """
    Get the chain of parent organizations from an org to its root.

    Returns:
        List of org IDs from direct parent to root (ordered by proximity)
    """
    max_depth = _max_depth()

    def make_cte(cte):
        base = (
            Organization.objects
            .filter(id=org_id)
            .annotate(depth=Value(0, output_field=IntegerField()))
            .values('id', 'parent_organization_id', 'depth')
        )
        recursive = (
            cte.join(Organization, id=cte.col.parent_organization_id)
            .annotate(depth=_next_depth(cte))
            .filter(depth__lte=max_depth + 1)
            .values('id', 'parent_organization_id', 'depth')
        )
        return base.union(recursive, all=True)

    cte = CTE.recursive(make_cte)
    rows = list(
        with_cte(cte, select=cte.join(Organization, id=cte.col.id))
        .annotate(walk_depth=cte.col.depth)
        .order_by('walk_depth')
        .values_list('id', 'walk_depth')
    )
    chain = _dedupe_walk(rows, org_id, 'upline', max_depth)

    if include_self:
        return chain
    return [upline_id for upline_id in chain if upline_id != _as_uuid(org_id)]


def get_root_org_id(org_id: UUID) -> UUID | None:
    """Get the top-level agency for an org (the org itself when it is a root)."""
    chain = get_upline_org_ids(org_id, include_self=True)
    return chain[-1] if chain else None


def is_org_in_downline(root_org_id: UUID, org_id: UUID) -> bool:
    """Check whether org_id is the root itself or one of its descendants."""
    if not org_id:
        return False
    return _as_uuid(org_id) in resolve_downline_org_ids(root_org_id)


def is_agent_in_downline(root_org_id: UUID, agent_id: UUID) -> bool:
    """Check whether an agent is an active member anywhere in the downline."""
    org_ids = resolve_downline_org_ids(root_org_id)
    if not org_ids:
        return False
    return (
        OrganizationMember.objects
        .filter(organization_id__in=org_ids, user_id=agent_id, status='active')
        .exists()
    )


def get_direct_child_orgs(parent_org_id: UUID) -> list[dict]:
    return list(
        Organization.objects
        .filter(parent_organization_id=parent_org_id)
        .order_by('name')
        .values('id', 'name')
    )


def _downline_nodes(root_org_id: UUID) -> tuple[list[UUID], dict[UUID, dict]]:
    org_ids = resolve_downline_org_ids(root_org_id)
    nodes = {
        _as_uuid(row['id']): {
            'id': _as_uuid(row['id']),
            'name': row['name'],
            'parent_id': _as_uuid(row['parent_organization_id']) if row['parent_organization_id'] else None,
        }
        for row in Organization.objects.filter(id__in=org_ids).values(
            'id', 'name', 'parent_organization_id'
        )
    }
    return org_ids, nodes


def _children_by_parent(nodes: dict[UUID, dict], root_id: UUID) -> dict[UUID, list[dict]]:
    children: dict[UUID, list[dict]] = {}
    for node in nodes.values():
        if node['id'] == root_id or node['parent_id'] not in nodes:
            continue
        children.setdefault(node['parent_id'], []).append(node)
    for siblings in children.values():
        siblings.sort(key=lambda node: (node['name'] or '').lower())
    return children


def get_orgs_with_depth(root_org_id: UUID) -> list[dict]:
    """
    Flatten the downline into a pre-order list of {id, name, depth}.

    Children are visited alphabetically. Used as the parent picker when
    creating a sub-agency.
    """
    org_ids, nodes = _downline_nodes(root_org_id)
    if not org_ids:
        return []

    root_id = org_ids[0]
    children = _children_by_parent(nodes, root_id)
    result: list[dict] = []
    visited: set[UUID] = set()

    def walk(node: dict, depth: int):
        if node['id'] in visited:
            return
        visited.add(node['id'])
        result.append({'id': node['id'], 'name': node['name'], 'depth': depth})
        for child in children.get(node['id'], []):
            walk(child, depth + 1)

    walk(nodes[root_id], 0)
    return result


def get_hierarchy_tree(root_org_id: UUID) -> dict | None:
    """Build a nested {id, name, children} tree for the downline."""
    org_ids, nodes = _downline_nodes(root_org_id)
    if not org_ids:
        return None

    root_id = org_ids[0]
    children = _children_by_parent(nodes, root_id)
    visited: set[UUID] = set()

    def build(node: dict) -> dict:
        visited.add(node['id'])
        return {
            'id': node['id'],
            'name': node['name'],
            'children': [
                build(child)
                for child in children.get(node['id'], [])
                if child['id'] not in visited
            ],
        }

    return build(nodes[root_id])


def get_sub_orgs(root_org_id: UUID) -> list[dict]:
    """Every descendant of the root as {id, name}, in pre-order."""
    return [
        {'id': org['id'], 'name': org['name']}
        for org in get_orgs_with_depth(root_org_id)[1:]
    ]
