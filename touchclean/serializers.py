def _num(value):
    return float(value) if value is not None else None


def _iso(value):
    return value.isoformat() if value is not None else None


def booking_to_dict(b):
    return {
        "id": b.id,
        "customer_id": b.customer_id,
        "staff_id": b.staff_id,
        "status": b.status,
        "first_name": b.first_name,
        "last_name": b.last_name,
        "email": b.email,
        "phone": b.phone,
        "service_address": b.service_address,
        "service_type": b.service_type,
        "selected_services": list(b.selected_services or []),
        "property_type": b.property_type,
        "booking_type": b.booking_type,
        "preferred_date": _iso(b.preferred_date),
        "end_date": _iso(b.end_date),
        "notes": b.notes,
        "task_accepted_at": _iso(b.task_accepted_at),
        "task_started_at": _iso(b.task_started_at),
        "completed_at": _iso(b.completed_at),
        "estimated_hours": _num(b.estimated_hours),
        "estimated_cost": _num(b.estimated_cost),
        "actual_hours": _num(b.actual_hours),
        "actual_cost": _num(b.actual_cost),
        "staff_hours_worked": _num(b.staff_hours_worked),
        "created_at": _iso(b.created_at),
    }


def payroll_to_dict(p):
    return {
        "id": p.id,
        "staff_id": p.staff_id,
        "staff_user_id": p.staff.user_id if p.staff else None,
        "booking_id": p.booking_id,
        "pay_period_start": _iso(p.pay_period_start),
        "pay_period_end": _iso(p.pay_period_end),
        "hours_worked": _num(p.hours_worked),
        "hourly_rate": _num(p.hourly_rate),
        "gross_pay": _num(p.gross_pay),
        "tax_withheld": _num(p.tax_withheld),
        "superannuation": _num(p.superannuation),
        "net_pay": _num(p.net_pay),
        "bonus": _num(p.bonus),
        "bonus_reason": p.bonus_reason,
        "deductions": _num(p.deductions),
        "payment_status": p.payment_status,
        "payment_date": _iso(p.payment_date),
        "payment_reference": p.payment_reference,
        "notes": p.notes,
        "created_at": _iso(p.created_at),
    }


def breakdown_to_dict(calc):
    return {
        "gross": _num(calc.gross),
        "tax": _num(calc.tax),
        "superannuation": _num(calc.superannuation),
        "net": _num(calc.net),
    }


def staff_to_dict(user):
    detail = user.staff_detail
    data = {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "is_active": user.is_active_user,
    }
    if detail is None:
        data["details"] = None
        return data
    data["details"] = {
        "id": detail.id,
        "employee_id": detail.employee_id,
        "employment_type": detail.employment_type,
        "hourly_rate": _num(detail.hourly_rate),
        "total_hours_worked": _num(detail.total_hours_worked) or 0.0,
        "total_earnings": _num(detail.total_earnings) or 0.0,
        "total_tasks_completed": detail.total_tasks_completed or 0,
        "average_rating": _num(detail.average_rating) or 0.0,
        "rating_count": detail.rating_count or 0,
    }
    return data


def enquiry_to_dict(e):
    return {
        "id": e.id,
        "name": e.name,
        "email": e.email,
        "phone": e.phone,
        "service_interest": e.service_interest,
        "message": e.message,
        "status": e.status,
        "notes": e.notes,
        "responded_at": _iso(e.responded_at),
        "responded_by": e.responded_by,
        "created_at": _iso(e.created_at),
    }


def notification_to_dict(n):
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": _iso(n.created_at),
    }
