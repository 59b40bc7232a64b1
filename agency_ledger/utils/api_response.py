from flask import jsonify

from agency_ledger.exceptions import ConflictError, LedgerError, NotFoundError, ValidationError

class APIResponse:
    """Standardized API response format"""
    
    @staticmethod
    def success(data=None, message=None, status_code=200):
        """Success response"""
        response = {
            'success': True,
            'message': message or 'Operation successful'
        }
        if data is not None:
            response['data'] = data
        return jsonify(response), status_code
    
    @staticmethod
    def error(message, errors=None, status_code=400):
        """Error response"""
        response = {
            'success': False,
            'message': message
        }
        if errors:
            response['errors'] = errors
        return jsonify(response), status_code
    
    @staticmethod
    def validation_error(errors, message="Validation failed"):
        """Validation error response"""
        return APIResponse.error(message, errors=errors, status_code=422)
    
    @staticmethod
    def unauthorized(message="Unauthorized access"):
        """Unauthorized response"""
        return APIResponse.error(message, status_code=401)
    
    @staticmethod
    def not_found(message="Resource not found"):
        """Not found response"""
        return APIResponse.error(message, status_code=404)
    
    @staticmethod
    def conflict(message="Conflict"):
        """Conflict response"""
        return APIResponse.error(message, status_code=409)
    
    @staticmethod
    def from_ledger_error(error: LedgerError):
        """Map a ledger exception to its response"""
        if isinstance(error, NotFoundError):
            return APIResponse.not_found(str(error))
        if isinstance(error, ConflictError):
            return APIResponse.conflict(str(error))
        if isinstance(error, ValidationError):
            return APIResponse.validation_error(error.errors, message=str(error))
        return APIResponse.error(str(error))
