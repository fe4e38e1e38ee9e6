"""Utility for resolving entity names and codes to IDs."""

from wealthledger.domain.entity import EntityService


def resolve_entity(entity_service: EntityService, entity: str | int) -> int:
    """Resolve entity ID, code or name to entity ID.

    Args:
        entity_service: EntityService instance
        entity: Entity ID (int or string representation of int), entity code or name

    Returns:
        Entity ID

    Raises:
        ValueError: If entity is not found or the name is ambiguous
    """
    # If it's already an integer, use it as ID
    if isinstance(entity, int):
        if entity_service.get_entity(entity) is None:
            raise ValueError(f"Entity ID {entity} not found")
        return entity

    # Try to parse as integer (handles string IDs like "1")
    try:
        entity_id = int(entity)
    except (ValueError, TypeError):
        entity_id = None
    if entity_id is not None:
        if entity_service.get_entity(entity_id) is None:
            raise ValueError(f"Entity ID {entity_id} not found")
        return entity_id

    by_code = entity_service.get_entity_by_code(entity)
    if by_code is not None:
        return by_code.id

    matches = [e for e in entity_service.list_entities() if e.entity_name == entity]
    if len(matches) > 1:
        raise ValueError(f"Entity name '{entity}' is ambiguous; use its ID or code")
    if matches:
        return matches[0].id

    raise ValueError(f"Entity '{entity}' not found")
