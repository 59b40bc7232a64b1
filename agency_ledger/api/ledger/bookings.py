from flask import request, current_app

from agency_ledger.api.ledger import ledger_bp, get_ledger
from agency_ledger.api.ledger.schemas import LedgerSchemas
from agency_ledger.exceptions import LedgerError
from agency_ledger.utils.api_response import APIResponse
from agency_ledger.utils.decorators import account_required

# ===== BOOKINGS =====

@ledger_bp.route('/bookings', methods=['POST'])
@account_required()
def create_booking(account_id):
    """Create a booking; base price and balance are derived server-side"""
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_booking(request.get_json(silent=True))
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        booking = get_ledger().create_booking(account_id, cleaned_data)
        return APIResponse.success(
            {'booking': booking.to_dict()},
            message='Booking created successfully',
            status_code=201
        )
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Create booking error: {str(e)}")
        return APIResponse.error("Failed to create booking", status_code=500)


@ledger_bp.route('/bookings/<booking_id>', methods=['PUT'])
@account_required()
def update_booking(account_id, booking_id):
    """Replace booking details and re-derive its financials"""
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_booking(request.get_json(silent=True))
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        booking = get_ledger().update_booking(account_id, booking_id, cleaned_data)
        return APIResponse.success({'booking': booking.to_dict()}, message='Booking updated successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Update booking error: {str(e)}")
        return APIResponse.error("Failed to update booking", status_code=500)


@ledger_bp.route('/bookings/<booking_id>', methods=['DELETE'])
@account_required()
def delete_booking(account_id, booking_id):
    try:
        get_ledger().delete_booking(account_id, booking_id)
        return APIResponse.success(message='Booking deleted successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Delete booking error: {str(e)}")
        return APIResponse.error("Failed to delete booking", status_code=500)


@ledger_bp.route('/bookings/bulk-delete', methods=['POST'])
@account_required()
def delete_bookings(account_id):
    """Delete several bookings; all-or-nothing"""
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_bulk_delete(request.get_json(silent=True))
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        deleted = get_ledger().delete_bookings(account_id, cleaned_data['booking_ids'])
        return APIResponse.success({'deleted': deleted}, message=f'{deleted} bookings deleted successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Bulk delete bookings error: {str(e)}")
        return APIResponse.error("Failed to delete bookings", status_code=500)
