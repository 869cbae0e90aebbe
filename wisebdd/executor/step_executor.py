"""
Step executor that invokes step handlers
"""
import asyncio
import concurrent.futures
import inspect
import time
import traceback
from typing import Any, Callable, List, Optional

from wisebdd.core.exceptions import PendingStepError
from wisebdd.executor.context import ScenarioContext
from wisebdd.executor.results import StepOutcome, StepStatus
from wisebdd.parser.document import DataTable, DocString, Step
from wisebdd.parser.step_catalog import StepBinding
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

Resume = Callable[[Any], Any]


def is_pending(value: Any) -> bool:
    """True when a handler returned a suspended computation"""
    return isinstance(value, concurrent.futures.Future) or inspect.isawaitable(value)


def resume_pending(pending: Any) -> Any:
    """Drive a suspended computation to completion once and return its value"""
    if isinstance(pending, concurrent.futures.Future):
        return pending.result()

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(_await(pending))
    finally:
        loop.close()


async def _await(pending: Any) -> Any:
    return await pending


def step_argument_value(step: Step) -> Any:
    """Convert a step's table or doc string into the form handed to handlers"""
    if isinstance(step.argument, DataTable):
        return step.argument.as_rows()
    if isinstance(step.argument, DocString):
        return step.argument.content
    return None


class StepExecutor:
    """Execute individual steps against their resolved bindings"""

    def __init__(self, resume: Optional[Resume] = None):
        self.resume = resume or resume_pending

    def execute_step(self, binding: StepBinding, step: Step, context: ScenarioContext,
                     resolved_keyword: str, from_background: bool = False) -> StepOutcome:
        """Run one step and classify the result"""
        outcome = StepOutcome(
            keyword=step.keyword.value,
            resolved_keyword=resolved_keyword,
            text=step.text,
            status=StepStatus.PASSED,
            location=step.location,
            from_background=from_background,
            pattern=binding.pattern,
        )

        start_time = time.perf_counter()
        try:
            arguments = self._build_arguments(binding, step, context)
            result = binding.handler(*arguments)
            if is_pending(result):
                logger.debug(f"Step '{step.text}' suspended, resuming")
                self.resume(result)
        except PendingStepError as e:
            outcome.status = StepStatus.PENDING
            outcome.error = str(e) or "Step is pending"
        except AssertionError as e:
            outcome.status = StepStatus.FAILED
            outcome.error = str(e) or "Assertion failed"
            logger.debug(traceback.format_exc())
        except Exception as e:
            outcome.status = StepStatus.FAILED
            outcome.error = f"{type(e).__name__}: {e}"
            logger.debug(traceback.format_exc())
        except asyncio.CancelledError as e:
            # BaseException since Python 3.8; a cancelled handler is a step fault
            outcome.status = StepStatus.FAILED
            outcome.error = f"Step was cancelled: {e}" if str(e) else "Step was cancelled"
        finally:
            outcome.duration = time.perf_counter() - start_time

        if outcome.status is StepStatus.PASSED:
            logger.debug(f"Step passed: {step}")
        else:
            logger.info(f"Step {outcome.status.value}: {step} - {outcome.error}")
        return outcome

    @staticmethod
    def _build_arguments(binding: StepBinding, step: Step, context: ScenarioContext) -> List[Any]:
        values = binding.match(step.text)
        if values is None:
            raise ValueError(f"Step text '{step.text}' no longer matches '{binding.pattern}'")

        arguments: List[Any] = [context, *values]
        if step.argument is not None:
            if not binding.accepts_argument:
                kind = 'data table' if step.data_table else 'doc string'
                raise TypeError(f"Step has a {kind} but handler for '{binding.pattern}' does not accept it")
            arguments.append(step_argument_value(step))
        elif binding.requires_argument:
            raise TypeError(f"Handler for '{binding.pattern}' requires a data table or doc string")
        return arguments
