from gigauth.decorators.auth_required import (
    admin_required,
    lenient_token_required,
    token_required,
)
