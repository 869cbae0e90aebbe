"""Before/after hooks around scenarios and steps"""
from typing import Any, Callable, Dict, List, Optional

from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

Hook = Callable[..., Any]

HOOK_POINTS = ('before_scenario', 'after_scenario', 'before_step', 'after_step')


class HookRegistry:
    """
    Ordered hook callbacks.

    Scenario hooks are called as ``hook(context, scenario)``; step hooks as
    ``hook(context, step)`` before the step and ``hook(context, step, outcome)`` after it.
    """

    def __init__(self):
        self._hooks: Dict[str, List[Hook]] = {point: [] for point in HOOK_POINTS}

    def add(self, point: str, hook: Hook) -> Hook:
        if point not in self._hooks:
            raise ValueError(f"Unknown hook point '{point}', expected one of {HOOK_POINTS}")
        self._hooks[point].append(hook)
        return hook

    def before_scenario(self, hook: Hook) -> Hook:
        return self.add('before_scenario', hook)

    def after_scenario(self, hook: Hook) -> Hook:
        return self.add('after_scenario', hook)

    def before_step(self, hook: Hook) -> Hook:
        return self.add('before_step', hook)

    def after_step(self, hook: Hook) -> Hook:
        return self.add('after_step', hook)

    def run(self, point: str, *args: Any) -> Optional[str]:
        """Call every hook of a point; returns the first error message, if any"""
        error = None
        for hook in self._hooks[point]:
            try:
                hook(*args)
            except Exception as e:
                name = getattr(hook, '__name__', repr(hook))
                logger.error(f"Hook {point} '{name}' failed: {e}")
                if error is None:
                    error = f"{point} hook '{name}' failed: {type(e).__name__}: {e}"
        return error
