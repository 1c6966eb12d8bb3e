# Scheduler module
from sitemap_stream.scheduler.bounded import run_capped

__all__ = ["run_capped"]
