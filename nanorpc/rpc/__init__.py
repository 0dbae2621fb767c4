"""Protocol core: registry, validation, scheduling, dispatch, channels and reverse calls."""
