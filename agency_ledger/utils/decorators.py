from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from agency_ledger.utils.api_response import APIResponse

def account_required():
    """
    Decorator that resolves the caller's account from the JWT identity and
    passes it to the view as account_id
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            account_id = get_jwt_identity()
            if not account_id:
                return APIResponse.unauthorized("Please login to continue")
            
            return f(account_id, *args, **kwargs)
        return decorated_function
    return decorator
