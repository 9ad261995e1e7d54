"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from nutshell.container import Container
from nutshell.infrastructure.preferences import UserPreferences
from nutshell.services.summarizer import SummarizerService


def get_container(request: Request) -> Container:
    """Provide the application container built at startup."""
    return request.app.state.container


ContainerDep = Annotated[Container, Depends(get_container)]


def get_summarizer_service(container: ContainerDep) -> SummarizerService:
    """Provide SummarizerService instance."""
    return container.service


def get_user_preferences(container: ContainerDep) -> UserPreferences:
    """Provide UserPreferences instance."""
    return container.preferences


# Type aliases for commonly used dependencies
SummarizerDep = Annotated[SummarizerService, Depends(get_summarizer_service)]
PreferencesDep = Annotated[UserPreferences, Depends(get_user_preferences)]
