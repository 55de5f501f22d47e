from decimal import Decimal

import pytest

from touchclean.errors import AppError
from touchclean.extensions import db
from touchclean.models import Booking, StaffDetail, StaffPayroll
from touchclean.services import PayrollService


def _detail(user):
    db.session.expire_all()
    return StaffDetail.query.filter_by(user_id=user.id).one()


def test_payroll_from_completed_booking(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id, staff_hours_worked=Decimal("10"))
    payroll = PayrollService.create_from_booking(
        booking.id, super_admin, hourly_rate=30, bonus=50, tax_percent=20, other_deductions=10
    )

    assert payroll.booking_id == booking.id
    assert Decimal(str(payroll.gross_pay)) == Decimal("340.00")
    assert Decimal(str(payroll.tax_withheld)) == Decimal("68.00")
    assert Decimal(str(payroll.superannuation)) == Decimal("39.10")
    assert Decimal(str(payroll.net_pay)) == Decimal("272.00")
    assert payroll.payment_status == "pending"
    assert f"booking_id:{booking.id}" in payroll.notes

    detail = _detail(staff)
    assert Decimal(str(detail.total_earnings)) == Decimal("272.00")
    assert Decimal(str(detail.total_hours_worked)) == Decimal("10")
    assert detail.total_tasks_completed == 1
    assert Decimal(str(db.session.get(Booking, booking.id).actual_cost)) == Decimal("340.00")


def test_zero_hours_booking_still_derives(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id)
    payroll = PayrollService.create_from_booking(booking.id, super_admin, hourly_rate=0)
    assert Decimal(str(payroll.gross_pay)) == 0
    assert Decimal(str(payroll.net_pay)) == 0
    assert _detail(staff).total_tasks_completed == 1


def test_defaults_come_from_staff_rate_then_config(make_user, make_booking, super_admin, app):
    paid_well = make_user("staff", hourly_rate=Decimal("40"))
    booking = make_booking(status="completed", staff_id=paid_well.id, staff_hours_worked=Decimal("2"))
    payroll = PayrollService.create_from_booking(booking.id, super_admin)
    assert Decimal(str(payroll.hourly_rate)) == Decimal("40.00")
    assert Decimal(str(payroll.gross_pay)) == Decimal("80.00")

    default_rate = make_user("staff")
    booking = make_booking(status="completed", staff_id=default_rate.id, staff_hours_worked=Decimal("2"))
    payroll = PayrollService.create_from_booking(booking.id, super_admin)
    assert Decimal(str(payroll.hourly_rate)) == Decimal(app.config["PAYROLL_DEFAULT_HOURLY_RATE"])


def test_second_derivation_is_refused(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id, staff_hours_worked=Decimal("5"))
    PayrollService.create_from_booking(booking.id, super_admin, hourly_rate=30)

    with pytest.raises(AppError) as exc:
        PayrollService.create_from_booking(booking.id, super_admin, hourly_rate=30)
    assert exc.value.status_code == 409

    detail = _detail(staff)
    assert detail.total_tasks_completed == 1
    assert Decimal(str(detail.total_hours_worked)) == Decimal("5")
    assert StaffPayroll.query.count() == 1


def test_legacy_notes_marker_counts_as_existing_payroll(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id)
    legacy = StaffPayroll(
        staff_id=staff.staff_detail.id,
        created_by=super_admin.id,
        pay_period_start=booking.preferred_date,
        pay_period_end=booking.preferred_date,
        hours_worked=Decimal("3"),
        hourly_rate=Decimal("30"),
        gross_pay=Decimal("90"),
        net_pay=Decimal("72"),
        notes=f"Imported. booking_id:{booking.id}",
    )
    db.session.add(legacy)
    db.session.commit()

    assert PayrollService.has_payroll(booking.id)
    with pytest.raises(AppError) as exc:
        PayrollService.create_from_booking(booking.id, super_admin)
    assert exc.value.status_code == 409


def test_marker_does_not_match_longer_ids(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id)
    legacy = StaffPayroll(
        staff_id=staff.staff_detail.id,
        created_by=super_admin.id,
        pay_period_start=booking.preferred_date,
        pay_period_end=booking.preferred_date,
        hourly_rate=Decimal("30"),
        gross_pay=Decimal("0"),
        net_pay=Decimal("0"),
        notes=f"booking_id:{booking.id}0",
    )
    db.session.add(legacy)
    db.session.commit()
    assert not PayrollService.has_payroll(booking.id)


def test_missing_staff_detail_writes_nothing(make_user, make_booking, super_admin):
    bare = make_user("staff", with_detail=False)
    booking = make_booking(status="completed", staff_id=bare.id, staff_hours_worked=Decimal("4"))

    with pytest.raises(AppError) as exc:
        PayrollService.create_from_booking(booking.id, super_admin)
    assert exc.value.status_code == 404

    db.session.expire_all()
    assert StaffPayroll.query.count() == 0
    assert db.session.get(Booking, booking.id).actual_cost is None


@pytest.mark.parametrize("status", ["pending", "confirmed", "in_progress", "cancelled"])
def test_only_completed_bookings_are_eligible(make_booking, super_admin, staff, status):
    booking = make_booking(status=status, staff_id=staff.id)
    with pytest.raises(AppError) as exc:
        PayrollService.create_from_booking(booking.id, super_admin)
    assert exc.value.status_code == 409


def test_unassigned_completed_booking_is_not_eligible(make_booking, super_admin):
    booking = make_booking(status="completed")
    with pytest.raises(AppError):
        PayrollService.create_from_booking(booking.id, super_admin)


def test_completed_bookings_listing_flags_payroll(make_booking, super_admin, staff):
    done = make_booking(status="completed", staff_id=staff.id)
    open_job = make_booking(status="completed", staff_id=staff.id)
    make_booking(status="in_progress", staff_id=staff.id)
    PayrollService.create_from_booking(done.id, super_admin, hourly_rate=30)

    rows = {row["booking"].id: row for row in PayrollService.completed_bookings()}
    assert set(rows) == {done.id, open_job.id}
    assert rows[done.id]["payroll_created"] is True
    assert rows[open_job.id]["payroll_created"] is False
    assert rows[open_job.id]["staff_name"] == staff.full_name


def test_manual_payroll_and_payment_status(super_admin, staff):
    payroll = PayrollService.create_manual(
        staff.id,
        super_admin,
        hours_worked="38",
        pay_period_start="2026-03-02",
        pay_period_end="2026-03-08",
        hourly_rate="30",
        tax_percent="20",
    )
    assert payroll.booking_id is None
    assert Decimal(str(payroll.gross_pay)) == Decimal("1140.00")
    assert Decimal(str(payroll.net_pay)) == Decimal("912.00")

    payroll = PayrollService.update_payment_status(payroll.id, "paid", super_admin, payment_reference="EFT-1")
    assert payroll.payment_date is not None
    assert payroll.payment_reference == "EFT-1"

    payroll = PayrollService.update_payment_status(payroll.id, "processing", super_admin)
    assert payroll.payment_date is None


def test_manual_payroll_rejects_inverted_period(super_admin, staff):
    with pytest.raises(AppError) as exc:
        PayrollService.create_manual(staff.id, super_admin, 5, "2026-03-08", "2026-03-02")
    assert exc.value.status_code == 400


def test_staff_earnings_summary(make_booking, super_admin, staff):
    first = make_booking(status="completed", staff_id=staff.id, staff_hours_worked=Decimal("2"))
    second = make_booking(status="completed", staff_id=staff.id, staff_hours_worked=Decimal("3"))
    paid = PayrollService.create_from_booking(first.id, super_admin, hourly_rate=50, tax_percent=0)
    PayrollService.create_from_booking(second.id, super_admin, hourly_rate=50, tax_percent=0)
    PayrollService.update_payment_status(paid.id, "paid", super_admin)

    summary = PayrollService.staff_earnings(staff)
    assert len(summary["records"]) == 2
    assert summary["total_paid"] == Decimal("100.00")
    assert summary["total_pending"] == Decimal("150.00")


def test_marker_lookup_ignores_other_bookings_notes(make_booking, super_admin, staff):
    booking = make_booking(status="completed", staff_id=staff.id)
    other = make_booking(status="completed", staff_id=staff.id)
    for notes in (f"booking_id:{other.id}", f"moved from booking_id:{booking.id}1 then booking_id:{other.id}"):
        db.session.add(
            StaffPayroll(
                staff_id=staff.staff_detail.id,
                created_by=super_admin.id,
                pay_period_start=booking.preferred_date,
                pay_period_end=booking.preferred_date,
                hourly_rate=Decimal("30"),
                gross_pay=Decimal("0"),
                net_pay=Decimal("0"),
                notes=notes,
            )
        )
    db.session.commit()

    assert PayrollService.has_payroll(other.id)
    assert not PayrollService.has_payroll(booking.id)
