from flask import request, current_app

from agency_ledger.api.ledger import ledger_bp, get_ledger
from agency_ledger.api.ledger.schemas import LedgerSchemas
from agency_ledger.exceptions import LedgerError
from agency_ledger.utils.api_response import APIResponse
from agency_ledger.utils.decorators import account_required

# ===== ADVANCE PAYMENTS =====

@ledger_bp.route('/bookings/<booking_id>/payments', methods=['POST'])
@account_required()
def add_payment(account_id, booking_id):
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_payment(request.get_json(silent=True))
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        booking = get_ledger().add_payment(account_id, booking_id, cleaned_data)
        return APIResponse.success({'booking': booking.to_dict()}, message='Payment added successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Add payment error: {str(e)}")
        return APIResponse.error("Failed to add payment", status_code=500)


@ledger_bp.route('/bookings/<booking_id>/payments/<payment_id>', methods=['PUT'])
@account_required()
def update_payment(account_id, booking_id, payment_id):
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_payment(request.get_json(silent=True), partial=True)
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        booking = get_ledger().update_payment(account_id, booking_id, payment_id, cleaned_data)
        return APIResponse.success({'booking': booking.to_dict()}, message='Payment updated successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Update payment error: {str(e)}")
        return APIResponse.error("Failed to update payment", status_code=500)


@ledger_bp.route('/bookings/<booking_id>/payments/<payment_id>', methods=['DELETE'])
@account_required()
def delete_payment(account_id, booking_id, payment_id):
    try:
        booking = get_ledger().delete_payment(account_id, booking_id, payment_id)
        return APIResponse.success({'booking': booking.to_dict()}, message='Payment deleted successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Delete payment error: {str(e)}")
        return APIResponse.error("Failed to delete payment", status_code=500)
