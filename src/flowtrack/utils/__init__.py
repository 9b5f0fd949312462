from .env import load_local_env, env_int, env_float

__all__ = ["load_local_env", "env_int", "env_float"]
