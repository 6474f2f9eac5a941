import click

from oracle_deployment.config import Configuration, available_profiles, resolve_config
from oracle_deployment.constants import PROFILES_DIR
from oracle_deployment.exceptions import ConfigMalformed, ConfigNotFound


class Profile(click.ParamType):
    """Resolves a profile name into a validated deployment Configuration."""

    name = "profile"

    def __init__(self, profiles_dir=PROFILES_DIR):
        self.profiles_dir = profiles_dir

    def get_metavar(self, param, *args, **kwargs):
        return "[" + "|".join(available_profiles(self.profiles_dir)) + "]"

    def convert(self, value, param, ctx) -> Configuration:
        if isinstance(value, Configuration):
            return value
        try:
            return resolve_config(value, profiles_dir=self.profiles_dir)
        except ConfigNotFound as e:
            self.fail(str(e), param, ctx)
        except ConfigMalformed as e:
            self.fail(f"Profile '{value}' is malformed: {e}", param, ctx)
