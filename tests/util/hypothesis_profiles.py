from __future__ import annotations

import os
from datetime import timedelta

from hypothesis import HealthCheck, Phase, settings

# Shared default: derandomized so table property failures reproduce exactly.
settings.register_profile(
    "default",
    max_examples=100,
    deadline=timedelta(milliseconds=500),
    derandomize=True,
    print_blob=True,
)

# Local development: fewer examples, still shrinks collisions quickly.
settings.register_profile(
    "dev",
    max_examples=40,
    deadline=timedelta(milliseconds=200),
    suppress_health_check=[HealthCheck.too_slow],
    phases=(Phase.explicit, Phase.reuse, Phase.generate, Phase.target),
)

# CI: more operation sequences per table, no per-example deadline.
settings.register_profile(
    "ci",
    max_examples=300,
    deadline=None,
    print_blob=True,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.filter_too_much],
    phases=(Phase.explicit, Phase.reuse, Phase.generate, Phase.target),
)

default_profile = os.getenv("HYPOTHESIS_PROFILE", "default")
try:
    settings.load_profile(default_profile)
except KeyError:  # unknown profile name in the environment
    settings.load_profile("default")

__all__ = ["default_profile"]
