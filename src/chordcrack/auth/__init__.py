from .password import PasswordCheck, PasswordProblem, is_valid_username, strength_score, validate_password

__all__ = ["PasswordCheck", "PasswordProblem", "is_valid_username", "strength_score", "validate_password"]
