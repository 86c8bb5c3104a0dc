"""Container CLI integration: argument building, execution and parsing."""

from .arguments import CommandBuilder
from .client import ContainerCli
from .gateway import CommandGateway, OutputLimitExceeded

__all__ = ["CommandBuilder", "CommandGateway", "ContainerCli", "OutputLimitExceeded"]
