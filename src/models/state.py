"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing start-up stages.
"""

from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

# Forward references for type hints - avoid circular import
if TYPE_CHECKING:
    from ..lib.client import ZettelstoreClient
    from .presenter import PresenterConfig


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the start-up pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as start-up progresses. The server
    keeps the final state and connects it to the logger for every request.

    Pipeline stages and their state additions:
        - Initial: url, auth, listen, verbosity
        - env_check: host, port, username, password, envOK
        - client_connect: client
        - config_load: presenterConfig
        - server_run: (no additions, terminal stage)

    Attributes:
        url: Base URL of the Zettelstore
        auth: Whether the Zettelstore needs authentication
        listen: Listen address of the presenter ("host:port" or ":port")
        verbosity: Logging verbosity level (0-3)
        envOK: Environment validation passed
        host: Host part of the listen address
        port: Port part of the listen address
        username: User name for authentication
        password: Password for authentication
        client: Connected Zettelstore client
        presenterConfig: Defaults from settings and configuration zettel
    """

    # CLI arguments
    url: str = field(default="")
    auth: bool = field(default=False)
    listen: str = field(default="")
    verbosity: int = field(default=1)

    # Pipeline state
    envOK: bool = field(default=False)
    host: str = field(default="127.0.0.1")
    port: int = field(default=23120)
    username: str = field(default="")
    password: str = field(default="")
    client: Optional[Any] = field(default=None)  # ZettelstoreClient at runtime
    presenterConfig: Optional[Any] = field(default=None)  # PresenterConfig at runtime

    @classmethod
    def state_createFromNamespace(cls: Type["ProgramState"], options: Namespace) -> "ProgramState":
        """
        Create ProgramState from an argparse Namespace.

        Args:
            options: Parsed CLI arguments (url, auth, listen, verbosity)

        Returns:
            ProgramState instance with all known CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Filter options_dict to only include fields that exist in ProgramState
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}
        return cls(**filtered_options)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            client_connect,
            config_load,
            server_run
        )
    """
    from ..lib.log import LOG

    state = initial_state
    for stage in stages:
        LOG(f"Stage: {stage.__name__}", level=3)
        state = stage(state)
    return state
