from decimal import Decimal

from src.domain.identity import Role
from src.infrastructure.repositories.user_repository import UserRepository


def _callback(booking_id, purpose="bal", signature="valid-signature"):
    return {
        "payment_link_id": "plink_1",
        "payment_link_reference_id": f"{booking_id}.{purpose}",
        "payment_link_status": "paid",
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": signature,
    }


def test_booking_flow(client, seeded, auth_headers, gateway):
    customer = auth_headers(seeded.customer)
    owner = auth_headers(seeded.venue_owner)

    payload = {
        "vendor_id": seeded.venue.id,
        "venue_unit_id": seeded.grand_hall.id,
        "start_date": "2026-11-01",
        "end_date": "2026-11-03",
        "notes": "Wedding reception",
    }
    response = client.post("/bookings", json=payload, headers=customer)

    assert response.status_code == 201
    body = response.json()
    booking_id = body["booking"]["id"]
    assert body["booking"]["booking_status"] == "pending"
    assert body["booking"]["payment_status"] == "partial"
    breakdown = body["payment_breakdown"]
    assert Decimal(breakdown["total_amount"]) == Decimal("150000")
    assert Decimal(breakdown["advance_amount"]) == Decimal("60000")
    assert Decimal(breakdown["remaining_amount"]) == Decimal("90000")
    assert breakdown["percentage"] == "40%"
    assert breakdown["note"] == "An advance of 40% is required for venue bookings."

    confirm = client.put(f"/bookings/{booking_id}/status", json={"status": "confirmed"}, headers=owner)
    assert confirm.status_code == 200
    assert confirm.json()["booking"]["booking_status"] == "confirmed"

    advance = client.post(f"/bookings/{booking_id}/pay-advance", headers=customer)
    assert advance.status_code == 200
    assert advance.json()["url"] == f"https://rzp.io/l/{booking_id}.adv"
    assert Decimal(advance.json()["amount"]) == Decimal("60000")

    advance_paid = client.post(
        f"/bookings/{booking_id}/payment-callback",
        json=_callback(booking_id, purpose="adv"),
    )
    assert advance_paid.status_code == 200
    assert advance_paid.json()["booking"]["payment_status"] == "partial"
    assert advance_paid.json()["booking"]["advance_paid_at"] is not None

    again = client.post(f"/bookings/{booking_id}/pay-advance", headers=customer)
    assert again.status_code == 400

    checkout = client.post(f"/bookings/{booking_id}/pay-remaining", headers=customer)
    assert checkout.status_code == 200
    assert checkout.json()["url"] == f"https://rzp.io/l/{booking_id}.bal"
    assert Decimal(checkout.json()["amount"]) == Decimal("90000")
    assert gateway.sessions[1]["amount_minor_units"] == 9000000

    paid = client.post(f"/bookings/{booking_id}/payment-callback", json=_callback(booking_id))
    assert paid.status_code == 200
    assert paid.json()["booking"]["payment_status"] == "paid"
    assert paid.json()["booking"]["booking_status"] == "completed"

    fetched = client.get(f"/bookings/{booking_id}", headers=customer)
    assert fetched.status_code == 200
    assert fetched.json()["booking_status"] == "completed"


def test_conflicting_booking_is_rejected(client, seeded, auth_headers):
    first = {
        "vendor_id": seeded.venue.id,
        "venue_unit_id": seeded.grand_hall.id,
        "start_date": "2026-11-04",
        "end_date": "2026-11-06",
    }
    assert client.post("/bookings", json=first, headers=auth_headers(seeded.customer)).status_code == 201

    overlapping = dict(first, start_date="2026-11-01", end_date="2026-11-05")
    response = client.post("/bookings", json=overlapping, headers=auth_headers(seeded.other_customer))
    assert response.status_code == 409
    assert response.json()["detail"] == "Vendor or venue is already booked for the selected dates"

    touching = dict(first, start_date="2026-11-01", end_date="2026-11-04")
    response = client.post("/bookings", json=touching, headers=auth_headers(seeded.other_customer))
    assert response.status_code == 201


def test_booked_dates_are_public(client, seeded, auth_headers):
    client.post(
        "/bookings",
        json={
            "vendor_id": seeded.photographer.id,
            "start_date": "2026-11-20",
            "end_date": "2026-11-21",
        },
        headers=auth_headers(seeded.customer),
    )

    response = client.get(f"/vendors/{seeded.photographer.id}/booked-dates")

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "freelancer"
    assert [(r["start_date"], r["end_date"]) for r in body["booked_ranges"]] == [
        ("2026-11-20", "2026-11-21")
    ]


def test_requests_without_token_are_unauthenticated(client, seeded):
    response = client.get("/bookings")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"

    bad = client.get("/bookings", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_illegal_transition_and_bad_payload(client, seeded, auth_headers):
    created = client.post(
        "/bookings",
        json={
            "vendor_id": seeded.event_team.id,
            "package_id": seeded.gold_package.id,
            "start_date": "2026-12-01",
            "end_date": "2026-12-02",
        },
        headers=auth_headers(seeded.customer),
    )
    booking_id = created.json()["booking"]["id"]

    response = client.put(
        f"/bookings/{booking_id}/status",
        json={"status": "completed"},
        headers=auth_headers(seeded.team_owner),
    )
    assert response.status_code == 409

    response = client.put(
        f"/bookings/{booking_id}/status",
        json={"status": "confirmed"},
        headers=auth_headers(seeded.customer),
    )
    assert response.status_code == 403

    reversed_dates = {
        "vendor_id": seeded.photographer.id,
        "start_date": "2026-12-05",
        "end_date": "2026-12-01",
    }
    response = client.post("/bookings", json=reversed_dates, headers=auth_headers(seeded.customer))
    assert response.status_code == 400


def test_forged_payment_callback_is_rejected(client, seeded, auth_headers):
    created = client.post(
        "/bookings",
        json={
            "vendor_id": seeded.photographer.id,
            "start_date": "2026-11-01",
            "end_date": "2026-11-01",
        },
        headers=auth_headers(seeded.customer),
    )
    booking_id = created.json()["booking"]["id"]

    response = client.post(
        f"/bookings/{booking_id}/payment-callback",
        json=_callback(booking_id, signature="forged"),
    )
    assert response.status_code == 400

    booking = client.get(f"/bookings/{booking_id}", headers=auth_headers(seeded.customer)).json()
    assert booking["payment_status"] == "partial"


def test_vendor_catalog_endpoints(client, seeded, auth_headers, media_store):
    listing = client.get("/vendors", params={"type": "venue"})
    assert listing.status_code == 200
    assert listing.json()["count"] == 1
    assert [u["title"] for u in listing.json()["vendors"][0]["units"]] == ["Grand Hall", "Lawn"]

    owner = auth_headers(seeded.venue_owner)
    me = client.get("/vendors/me", headers=owner)
    assert me.json()["id"] == seeded.venue.id

    added = client.post(
        f"/vendors/{seeded.venue.id}/units",
        json={"units": [{"title": "Terrace", "capacity": 80, "price_per_day": "12000"}]},
        headers=owner,
    )
    assert added.status_code == 201
    terrace_id = added.json()[0]["id"]

    upload = client.post(
        f"/vendors/{seeded.venue.id}/units/{terrace_id}/images",
        files={"file": ("terrace.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=owner,
    )
    assert upload.status_code == 200
    assert upload.json()["images"][0].endswith("/terrace.jpg")

    media_store.fail = True
    failed = client.post(
        f"/vendors/{seeded.venue.id}/profile-photo",
        files={"file": ("me.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=owner,
    )
    assert failed.status_code == 503

    blocked = client.patch(
        f"/vendors/{seeded.venue.id}/availability",
        json={"booked_dates": ["2026-12-25"]},
        headers=owner,
    )
    assert blocked.json()["booked_dates"] == ["2026-12-25"]

    updated = client.put(f"/vendors/{seeded.venue.id}", json={"city": "Udaipur"}, headers=owner)
    assert updated.json()["city"] == "Udaipur"

    forbidden = client.put(
        f"/vendors/{seeded.venue.id}",
        json={"city": "Goa"},
        headers=auth_headers(seeded.customer),
    )
    assert forbidden.status_code == 403


def test_vendor_update_rejects_foreign_and_null_fields(client, seeded, auth_headers):
    owner = auth_headers(seeded.venue_owner)

    foreign = client.put(
        f"/vendors/{seeded.venue.id}",
        json={"freelancer_category": "dj", "base_price": "1000"},
        headers=owner,
    )
    assert foreign.status_code == 400
    assert client.get("/vendors", params={"category": "dj"}).json()["count"] == 0

    nulled = client.put(
        f"/vendors/{seeded.photographer.id}",
        json={"currency": None},
        headers=auth_headers(seeded.photographer_owner),
    )
    assert nulled.status_code == 400
    assert nulled.json()["detail"] == "Fields cannot be cleared: currency"

    listing = client.get("/vendors", params={"type": "freelancer"})
    assert listing.status_code == 200
    assert listing.json()["vendors"][0]["currency"] == "INR"


def test_admin_verifies_units_and_refunds(client, seeded, auth_headers):
    admin = auth_headers(seeded.admin)

    denied = client.put(
        f"/admin/vendors/{seeded.venue.id}/units/{seeded.lawn.id}/verify",
        headers=auth_headers(seeded.venue_owner),
    )
    assert denied.status_code == 403

    verified = client.put(f"/admin/vendors/{seeded.venue.id}/units/{seeded.lawn.id}/verify", headers=admin)
    assert verified.status_code == 200
    assert verified.json()["message"] == 'Venue "Lawn" verified successfully'
    assert verified.json()["unit"]["verified"] is True

    assert client.get("/admin/vendors", headers=admin).json()["count"] == 3

    created = client.post(
        "/bookings",
        json={
            "vendor_id": seeded.photographer.id,
            "start_date": "2026-11-01",
            "end_date": "2026-11-01",
        },
        headers=auth_headers(seeded.customer),
    )
    booking_id = created.json()["booking"]["id"]

    refunded = client.post(f"/bookings/{booking_id}/refund", headers=admin)
    assert refunded.status_code == 200
    assert refunded.json()["booking"]["payment_status"] == "refunded"
    assert refunded.json()["booking"]["booking_status"] == "cancelled"


def test_register_vendor_over_http(client, seeded, db, auth_headers):
    newcomer = UserRepository(db).create("Zoya Beats", "zoya@example.com", Role.VENDOR)
    db.commit()

    response = client.post(
        "/vendors",
        json={
            "type": "freelancer",
            "name": "Zoya Beats",
            "city": "Goa",
            "freelancer_category": "dj",
            "base_price": "20000",
        },
        headers=auth_headers(newcomer),
    )
    assert response.status_code == 201
    assert response.json()["freelancer_category"] == "dj"

    missing_category = client.post(
        "/vendors",
        json={"type": "freelancer", "name": "Nobody", "city": "Goa"},
        headers=auth_headers(seeded.photographer_owner),
    )
    assert missing_category.status_code == 400


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_customer_marks_booking_paid(client, seeded, auth_headers):
    customer = auth_headers(seeded.customer)
    created = client.post(
        "/bookings",
        json={
            "vendor_id": seeded.photographer.id,
            "start_date": "2026-11-01",
            "end_date": "2026-11-01",
        },
        headers=customer,
    )
    booking_id = created.json()["booking"]["id"]

    paid = client.put(f"/bookings/{booking_id}/mark-paid", headers=customer)
    assert paid.status_code == 200
    assert paid.json()["booking"]["booking_status"] == "completed"

    listed = client.get("/bookings", headers=auth_headers(seeded.photographer_owner))
    assert [b["id"] for b in listed.json()["bookings"]] == [booking_id]

    stranger = client.put(f"/bookings/{booking_id}/mark-paid", headers=auth_headers(seeded.other_customer))
    assert stranger.status_code == 403


def test_customer_profile_endpoints(client, seeded, auth_headers):
    customer = auth_headers(seeded.customer)

    me = client.get("/customers/me", headers=customer)
    assert me.status_code == 200
    assert me.json()["email"] == "kiran@example.com"

    updated = client.put(
        "/customers/me",
        json={"phone": "9876543210", "city": "Jaipur"},
        headers=customer,
    )
    assert updated.status_code == 200
    assert updated.json()["message"] == "Profile updated successfully"
    assert updated.json()["customer"]["city"] == "Jaipur"
    assert client.get("/customers/me", headers=customer).json()["phone"] == "9876543210"

    vendor = client.get("/customers/me", headers=auth_headers(seeded.venue_owner))
    assert vendor.status_code == 403

    assert client.get("/customers/me").status_code == 401
