"""Password hashing with bcrypt."""

from typing import Callable

import bcrypt

from utils.env import env_number

# 2^12 iterations unless overridden
BCRYPT_ROUNDS = env_number("BCRYPT_ROUNDS", 12, minimum=4)

PasswordHasher = Callable[[str], str]


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash password using a fresh bcrypt salt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor (4-31)

    Returns:
        Bcrypt hashed password as string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
