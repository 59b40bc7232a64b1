from decimal import Decimal
from unittest.mock import patch

import pytest

from agency_ledger.exceptions import ConflictError, NotFoundError, ValidationError
from agency_ledger.models import Booking, Program
from agency_ledger.services.store import LedgerStore
from conftest import ACCOUNT, OTHER_ACCOUNT, PRICING


def assert_balanced(booking):
    paid = sum((p.amount for p in booking.advance_payments), Decimal('0'))
    assert booking.remaining_balance == Decimal(str(booking.selling_price)) - paid
    assert booking.is_fully_paid == (booking.remaining_balance <= 0)
    assert booking.profit == Decimal(str(booking.selling_price)) - booking.base_price


class TestCreateBooking:

    def test_create_derives_financials(self, ledger, priced_program, booking_data, db):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        assert booking.base_price == 1800
        assert booking.profit == 700
        assert booking.remaining_balance == 2500
        assert booking.is_fully_paid is False
        assert_balanced(booking)
        assert db.session.get(Program, priced_program.id).total_bookings == 1

    def test_create_with_initial_payments(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(
            priced_program,
            advance_payments=[{'amount': 1000, 'method': 'cash'}, {'amount': 1500, 'method': 'transfer'}]
        ))
        
        assert booking.remaining_balance == 0
        assert booking.is_fully_paid is True
        ids = [p.id for p in booking.advance_payments]
        assert len(set(ids)) == 2 and all(ids)
        assert_balanced(booking)

    def test_create_without_pricing_has_zero_cost(self, ledger, program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(program))
        
        assert booking.base_price == 0
        assert booking.profit == 2500

    def test_duplicate_passport_conflicts(self, ledger, priced_program, booking_data, db):
        ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        with pytest.raises(ConflictError):
            ledger.create_booking(ACCOUNT, booking_data(priced_program, client_name_fr='Someone Else'))
        
        assert db.session.get(Program, priced_program.id).total_bookings == 1
        assert db.session.query(Booking).count() == 1

    def test_same_passport_on_other_program_or_account(self, ledger, priced_program, make_program, booking_data):
        other_program = make_program(name='Hajj')
        foreign_program = make_program(account_id=OTHER_ACCOUNT)
        
        ledger.create_booking(ACCOUNT, booking_data(priced_program))
        ledger.create_booking(ACCOUNT, booking_data(other_program))
        booking = ledger.create_booking(OTHER_ACCOUNT, booking_data(foreign_program))
        
        assert booking.account_id == OTHER_ACCOUNT

    def test_package_required_when_program_has_packages(self, ledger, priced_program, booking_data, db):
        with pytest.raises(ValidationError) as excinfo:
            ledger.create_booking(ACCOUNT, booking_data(priced_program, package_name=None))
        
        assert 'packageId' in excinfo.value.errors
        assert db.session.get(Program, priced_program.id).total_bookings == 0

    def test_program_without_packages_needs_no_package(self, ledger, make_program, pricing_service, booking_data):
        program = make_program(with_packages=False)
        pricing_service.upsert_pricing_configuration(ACCOUNT, program.id, PRICING)
        
        booking = ledger.create_booking(ACCOUNT, booking_data(program, package_name=None))
        
        assert booking.base_price == 1350

    def test_unknown_program_not_found(self, ledger, make_program, booking_data):
        foreign_program = make_program(account_id=OTHER_ACCOUNT)
        
        with pytest.raises(NotFoundError):
            ledger.create_booking(ACCOUNT, booking_data(foreign_program))

    def test_malformed_selection_rejected(self, ledger, priced_program, booking_data):
        selection = {'cities': ['Makkah'], 'hotelNames': [], 'roomTypes': []}
        
        with pytest.raises(ValidationError):
            ledger.create_booking(ACCOUNT, booking_data(priced_program, selection=selection))

    def test_counter_failure_rolls_back_booking(self, ledger, priced_program, booking_data, db):
        with patch.object(LedgerStore, 'adjust_booking_counter', side_effect=RuntimeError('store down')):
            with pytest.raises(RuntimeError):
                ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        assert db.session.query(Booking).count() == 0
        assert db.session.get(Program, priced_program.id).total_bookings == 0


class TestUpdateBooking:

    def test_update_recomputes_against_current_pricing(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(
            priced_program, advance_payments=[{'amount': 500}]
        ))
        payment_id = booking.advance_payments[0].id
        
        updated = ledger.update_booking(ACCOUNT, booking.id, booking_data(
            priced_program, selling_price=3000, person_type='child'
        ))
        
        assert updated.base_price == 1300
        assert updated.profit == 1700
        assert updated.remaining_balance == 2500
        assert [p.id for p in updated.advance_payments] == [payment_id]
        assert_balanced(updated)

    def test_update_to_empty_selection(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        updated = ledger.update_booking(ACCOUNT, booking.id, booking_data(priced_program, selection=None))
        
        assert updated.base_price == 1350

    def test_update_foreign_booking_not_found(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        with pytest.raises(NotFoundError):
            ledger.update_booking(OTHER_ACCOUNT, booking.id, booking_data(priced_program))

    def test_update_missing_package_rejected(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        with pytest.raises(ValidationError):
            ledger.update_booking(ACCOUNT, booking.id, booking_data(priced_program, package_name=''))

    def test_update_to_taken_passport_conflicts(self, ledger, priced_program, booking_data):
        ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P1'))
        second = ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P2'))
        
        with pytest.raises(ConflictError):
            ledger.update_booking(ACCOUNT, second.id, booking_data(priced_program, passport='P1'))

    def test_moving_booking_moves_counter(self, ledger, priced_program, make_program, booking_data, db):
        other_program = make_program(name='Hajj')
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        ledger.update_booking(ACCOUNT, booking.id, booking_data(other_program))
        
        assert db.session.get(Program, priced_program.id).total_bookings == 0
        assert db.session.get(Program, other_program.id).total_bookings == 1
        # the new program has no pricing
        assert db.session.get(Booking, booking.id).base_price == 0


class TestDeleteBooking:

    def test_delete_decrements_counter(self, ledger, priced_program, booking_data, db):
        first = ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P1'))
        ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P2'))
        
        ledger.delete_booking(ACCOUNT, first.id)
        
        assert db.session.get(Booking, first.id) is None
        assert db.session.get(Program, priced_program.id).total_bookings == 1

    def test_delete_missing_or_foreign_not_found(self, ledger, priced_program, booking_data, db):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        with pytest.raises(NotFoundError):
            ledger.delete_booking(OTHER_ACCOUNT, booking.id)
        with pytest.raises(NotFoundError):
            ledger.delete_booking(ACCOUNT, 'no-such-booking')
        
        assert db.session.get(Program, priced_program.id).total_bookings == 1

    def test_counter_never_negative(self, ledger, priced_program, booking_data, db):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        program = db.session.get(Program, priced_program.id)
        program.total_bookings = 0
        db.session.commit()
        
        ledger.delete_booking(ACCOUNT, booking.id)
        
        assert db.session.get(Program, priced_program.id).total_bookings == 0


class TestBulkDelete:

    @pytest.fixture
    def spread(self, ledger, priced_program, make_program, booking_data):
        other_program = make_program(name='Hajj')
        a = [ledger.create_booking(ACCOUNT, booking_data(priced_program, passport=f'A{i}')) for i in range(3)]
        b = [ledger.create_booking(ACCOUNT, booking_data(other_program, passport='B0'))]
        return priced_program, other_program, a, b

    def test_bulk_delete_per_program_counts(self, ledger, spread, db):
        program_a, program_b, a, b = spread
        
        deleted = ledger.delete_bookings(ACCOUNT, [a[0].id, a[1].id, b[0].id])
        
        assert deleted == 3
        assert db.session.get(Program, program_a.id).total_bookings == 1
        assert db.session.get(Program, program_b.id).total_bookings == 0
        assert db.session.query(Booking).count() == 1

    def test_bulk_delete_is_all_or_nothing(self, ledger, spread, make_program, booking_data, db):
        program_a, program_b, a, b = spread
        foreign = ledger.create_booking(
            OTHER_ACCOUNT, booking_data(make_program(account_id=OTHER_ACCOUNT), passport='X1')
        )
        
        with pytest.raises(ConflictError):
            ledger.delete_bookings(ACCOUNT, [a[0].id, b[0].id, foreign.id])
        with pytest.raises(ConflictError):
            ledger.delete_bookings(ACCOUNT, [a[0].id, 'no-such-booking'])
        
        assert db.session.query(Booking).count() == 5
        assert db.session.get(Program, program_a.id).total_bookings == 3
        assert db.session.get(Program, program_b.id).total_bookings == 1

    def test_bulk_delete_requires_ids(self, ledger):
        with pytest.raises(ValidationError):
            ledger.delete_bookings(ACCOUNT, [])


class TestProgramSummary:

    def test_summary_totals(self, ledger, priced_program, booking_data):
        ledger.create_booking(ACCOUNT, booking_data(
            priced_program, passport='P1', advance_payments=[{'amount': 1000}]
        ))
        ledger.create_booking(ACCOUNT, booking_data(
            priced_program, passport='P2', selling_price=2000, person_type='child'
        ))
        
        summary = ledger.summarize_program(ACCOUNT, priced_program.id)
        
        assert summary == {
            'totalBookings': 2,
            'totalRevenue': 4500.0,
            'totalCost': 3100.0,
            'totalProfit': 1400.0,
            'totalPaid': 1000.0,
            'totalRemaining': 3500.0,
        }

    def test_summary_unknown_program(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.summarize_program(ACCOUNT, 'no-such-program')


class TestStoredCatalogData:

    def store_packages(self, db, program, packages):
        db.session.execute(
            Program.__table__.update().where(Program.__table__.c.id == program.id).values(packages=packages)
        )
        db.session.commit()
        db.session.expire_all()

    def test_zero_guest_room_does_not_block_program(self, ledger, pricing_service, priced_program, booking_data, db):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program))
        self.store_packages(db, priced_program, [{
            'name': 'Gold',
            'hotels': {'Makkah': ['Hilton']},
            'prices': [{'hotelCombination': 'Hilton', 'roomTypes': [{'type': 'double', 'guests': 0}]}],
        }])
        
        assert pricing_service.recalculate_program(ACCOUNT, priced_program.id) == 1
        assert db.session.get(Booking, booking.id).base_price == 1350
        
        ledger.delete_booking(ACCOUNT, booking.id)
        
        assert db.session.get(Booking, booking.id) is None
        assert db.session.get(Program, priced_program.id).total_bookings == 0


class TestProgramLocking:

    @pytest.fixture
    def events(self):
        """Records program row locks and booking writes in call order"""
        events = []
        get_program = LedgerStore.get_program
        add = LedgerStore.add
        flush = LedgerStore.flush
        
        def locking_get_program(self, account_id, program_id, for_update=False):
            if for_update:
                events.append(('lock', program_id))
            return get_program(self, account_id, program_id, for_update)
        
        def recording_add(self, instance):
            events.append(('add', type(instance).__name__))
            return add(self, instance)
        
        def recording_flush(self):
            events.append(('flush', None))
            return flush(self)
        
        with patch.object(LedgerStore, 'get_program', autospec=True, side_effect=locking_get_program), \
                patch.object(LedgerStore, 'add', autospec=True, side_effect=recording_add), \
                patch.object(LedgerStore, 'flush', autospec=True, side_effect=recording_flush):
            yield events

    @staticmethod
    def before(events, kind):
        return events[:[e[0] for e in events].index(kind)]

    def test_create_locks_program_before_insert(self, ledger, priced_program, booking_data, events):
        ledger.create_booking(ACCOUNT, booking_data(priced_program))
        
        assert self.before(events, 'add') == [('lock', priced_program.id)]

    def test_moves_lock_both_programs_in_id_order(self, ledger, priced_program, make_program, booking_data, events):
        other_program = make_program(name='Hajj')
        first = ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P1'))
        second = ledger.create_booking(ACCOUNT, booking_data(other_program, passport='P2'))
        expected = [('lock', program_id) for program_id in sorted([priced_program.id, other_program.id])]
        
        del events[:]
        ledger.update_booking(ACCOUNT, first.id, booking_data(other_program, passport='P1'))
        assert self.before(events, 'flush') == expected
        
        del events[:]
        ledger.update_booking(ACCOUNT, second.id, booking_data(priced_program, passport='P2'))
        assert self.before(events, 'flush') == expected

    def test_bulk_delete_locks_programs_in_id_order(self, ledger, priced_program, make_program, booking_data, events):
        other_program = make_program(name='Hajj')
        ids = [
            ledger.create_booking(ACCOUNT, booking_data(other_program, passport='P1')).id,
            ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P2')).id,
        ]
        
        del events[:]
        ledger.delete_bookings(ACCOUNT, ids)
        
        expected = sorted([priced_program.id, other_program.id])
        assert [e[1] for e in events if e[0] == 'lock'][:2] == expected


class TestPassportNormalization:

    def test_passport_stored_upper_cased(self, ledger, priced_program, booking_data):
        booking = ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='  ab123 '))
        
        assert booking.passport_number == 'AB123'

    def test_case_variants_conflict(self, ledger, priced_program, booking_data, db):
        ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='p1000'))
        
        with pytest.raises(ConflictError):
            ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P1000'))
        
        assert db.session.get(Program, priced_program.id).total_bookings == 1

    def test_update_to_case_variant_conflicts(self, ledger, priced_program, booking_data):
        ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P1'))
        second = ledger.create_booking(ACCOUNT, booking_data(priced_program, passport='P2'))
        
        with pytest.raises(ConflictError):
            ledger.update_booking(ACCOUNT, second.id, booking_data(priced_program, passport='p1'))
