from flask import request, current_app

from agency_ledger.api.ledger import ledger_bp, get_ledger, get_pricing_service
from agency_ledger.api.ledger.schemas import LedgerSchemas
from agency_ledger.exceptions import LedgerError
from agency_ledger.utils.api_response import APIResponse
from agency_ledger.utils.decorators import account_required

# ===== PROGRAM PRICING =====

@ledger_bp.route('/programs/<program_id>/pricing', methods=['GET'])
@account_required()
def get_pricing(account_id, program_id):
    """Get program pricing (data is null when none is set up)"""
    try:
        pricing = get_pricing_service().get_pricing_configuration(account_id, program_id)
        return APIResponse.success({'pricing': pricing.to_dict() if pricing else None})
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Get pricing error: {str(e)}")
        return APIResponse.error("Failed to fetch program pricing", status_code=500)


@ledger_bp.route('/programs/<program_id>/pricing', methods=['PUT'])
@account_required()
def upsert_pricing(account_id, program_id):
    """Create or update program pricing; every booking of the program is recalculated"""
    try:
        is_valid, errors, cleaned_data = LedgerSchemas.validate_pricing(request.get_json(silent=True))
        if not is_valid:
            return APIResponse.validation_error(errors)
        
        pricing = get_pricing_service().upsert_pricing_configuration(account_id, program_id, cleaned_data)
        return APIResponse.success({'pricing': pricing.to_dict()}, message='Program pricing saved successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Save pricing error: {str(e)}")
        return APIResponse.error("Failed to save program pricing", status_code=500)


@ledger_bp.route('/programs/<program_id>/pricing', methods=['DELETE'])
@account_required()
def delete_pricing(account_id, program_id):
    try:
        get_pricing_service().delete_pricing_configuration(account_id, program_id)
        return APIResponse.success(message='Program pricing deleted successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Delete pricing error: {str(e)}")
        return APIResponse.error("Failed to delete program pricing", status_code=500)


@ledger_bp.route('/programs/<program_id>/recalculate', methods=['POST'])
@account_required()
def recalculate_program(account_id, program_id):
    try:
        count = get_pricing_service().recalculate_program(account_id, program_id)
        return APIResponse.success({'recalculated': count}, message='Bookings recalculated successfully')
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Recalculate program error: {str(e)}")
        return APIResponse.error("Failed to recalculate bookings", status_code=500)


@ledger_bp.route('/programs/<program_id>/summary', methods=['GET'])
@account_required()
def program_summary(account_id, program_id):
    """Revenue, cost, profit and payment totals for a program"""
    try:
        summary = get_ledger().summarize_program(account_id, program_id)
        return APIResponse.success({'summary': summary})
        
    except LedgerError as e:
        return APIResponse.from_ledger_error(e)
    except Exception as e:
        current_app.logger.error(f"Program summary error: {str(e)}")
        return APIResponse.error("Failed to fetch program summary", status_code=500)
