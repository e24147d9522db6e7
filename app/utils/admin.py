def is_user_admin(user) -> bool:
    return bool(user) and user.get("role") == "admin"
