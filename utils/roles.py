CUSTOMER = "CUSTOMER"
BUSINESS = "BUSINESS"
ADMIN = "ADMIN"

DEFAULT_ROLES = [CUSTOMER, BUSINESS, ADMIN]
SELF_SERVICE_ROLES = {CUSTOMER, BUSINESS}


def role_names(roles):
    names = []
    for role in roles or []:
        name = role if isinstance(role, str) else getattr(role, "name", None)
        if name in DEFAULT_ROLES:
            names.append(name)
    return names


def primary_role(user):
    """The single role handed to the booking core as the actor's role."""
    names = set(role_names(getattr(user, "roles", None)))
    if ADMIN in names:
        return ADMIN
    if BUSINESS in names:
        return BUSINESS
    return CUSTOMER
