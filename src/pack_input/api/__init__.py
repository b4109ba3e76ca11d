from pack_input.api.routes import (
    article_router,
    input_request_router,
    install_error_handlers,
    response_field_router,
    response_profile_router,
    storage_router,
)

__all__ = [
    "article_router",
    "input_request_router",
    "install_error_handlers",
    "response_field_router",
    "response_profile_router",
    "storage_router",
]
