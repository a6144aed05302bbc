from .scheduler import create_scheduler, run_generation

__all__ = ["create_scheduler", "run_generation"]
