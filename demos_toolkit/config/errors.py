from pathlib import Path
from typing import Optional, Union


class ConfigError(Exception):
    """Base exception for configuration errors"""
    pass


class ConfigFileCorrupt(ConfigError):
    """Exception raised when the config file is not valid JSON or has an unexpected shape"""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Config file {path} is corrupt: {reason}")
        self.path = Path(path)
        self.reason = reason


class ConfigIOError(ConfigError):
    """Exception raised when a config or env file cannot be read or written"""

    def __init__(self, path: Union[str, Path], message: str, *, cause: Optional[Exception] = None):
        super().__init__(f"{message}: {path}" + (f" ({cause})" if cause else ""))
        self.path = Path(path)
        self.cause = cause


class MissingCredentialError(ConfigError):
    """Exception raised when no source supplies PRIVATE_KEY"""

    def __init__(self):
        super().__init__(
            "PRIVATE_KEY not configured!\n"
            "\n"
            "Configure using one of:\n"
            "1. demostools config init\n"
            "2. Create .env file with PRIVATE_KEY\n"
            '3. Use --config private_key="your_key"'
        )


class PreconditionError(ConfigError):
    """Exception raised when a migration is invoked without its required source"""
    pass


class PasswordUnavailableError(ConfigError):
    """Exception raised when a password is needed but there is no terminal to ask on"""

    def __init__(self, env_var: str = "DEMOS_MASTER_PWD"):
        super().__init__(
            f"A password is required but no terminal input is available. "
            f"Set {env_var} to supply it non-interactively."
        )
        self.env_var = env_var


class PasswordMismatchError(ConfigError):
    """Exception raised when a new password and its confirmation differ"""
    pass
