"""
Access control policy for collections and images.

All checks are pure predicates over user, collection and image documents.
An image has no ACL of its own; it inherits the permissions of the
collection that owns it.
"""
from core.config import ROLE_ADMIN


def is_admin(actor: dict) -> bool:
    return actor.get("role") == ROLE_ADMIN


def is_creator(actor: dict, collection: dict) -> bool:
    return bool(actor.get("id")) and actor.get("id") == collection.get("created_by_user_id")


def can_modify_collection(actor: dict, collection: dict) -> bool:
    """Admins and the collection's creator may change it"""
    return is_admin(actor) or is_creator(actor, collection)


def can_access_collection(actor: dict, collection: dict) -> bool:
    """Admins, the creator and users on the access list may read it"""
    if can_modify_collection(actor, collection):
        return True
    actor_id = actor.get("id")
    return bool(actor_id) and actor_id in (collection.get("accessible_user_ids") or [])


def _owns(collection: dict, image: dict) -> bool:
    return collection is not None and image.get("collection_id") == collection.get("id")


def can_modify_image(actor: dict, image: dict, owner_collection: dict) -> bool:
    # An image whose collection no longer exists is manageable by admins only
    if owner_collection is None:
        return is_admin(actor)
    return _owns(owner_collection, image) and can_modify_collection(actor, owner_collection)


def can_access_image(actor: dict, image: dict, owner_collection: dict) -> bool:
    if owner_collection is None:
        return is_admin(actor)
    return _owns(owner_collection, image) and can_access_collection(actor, owner_collection)
