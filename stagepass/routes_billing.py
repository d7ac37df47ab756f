"""Client and invoice routes for the artist billing view, plus Stripe payments."""
from __future__ import annotations

from datetime import date, datetime, timezone

import stripe
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import billing
from .auth import artist_required
from .extensions import db
from .models import (CLIENT_TYPES, INVOICE_STATUSES, LINE_ITEM_CATEGORIES, Client,
                     Invoice, InvoiceLineItem, today)

bp_billing = Blueprint("billing", __name__)

CLIENT_FIELDS = ("phone", "address", "city", "state", "zip_code", "notes")


class PayloadError(ValueError):
    """Invalid request body; the message is returned to the caller."""


def _parse_date(value, field: str) -> date:
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise PayloadError(f"{field} must be YYYY-MM-DD") from None


def _parse_tax_rate(value) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        raise PayloadError("tax_rate must be a number") from None
    if rate < 0 or rate > 100:
        raise PayloadError("tax_rate must be between 0 and 100")
    return rate


def _build_line_items(raw_items) -> list[InvoiceLineItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise PayloadError("items must be a non-empty list")

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise PayloadError("each item must be an object")
        description = (raw.get("description") or "").strip()
        if not description:
            raise PayloadError("each item needs a description")
        try:
            quantity = float(raw.get("quantity", 1))
            rate_cents = int(raw.get("rate_cents", 0))
        except (TypeError, ValueError):
            raise PayloadError("quantity and rate_cents must be numeric") from None
        if quantity <= 0 or rate_cents < 0:
            raise PayloadError("quantity must be positive and rate_cents non-negative")
        category = raw.get("category") or "performance"
        if category not in LINE_ITEM_CATEGORIES:
            raise PayloadError(f"unknown item category: {category}")

        items.append(InvoiceLineItem(
            description=description,
            quantity=quantity,
            rate_cents=rate_cents,
            amount_cents=billing.line_amount_cents(quantity, rate_cents),
            category=category,
        ))
    return items


def _recalculate(invoice: Invoice) -> None:
    subtotal, tax, total = billing.compute_totals(
        [item.amount_cents for item in invoice.items], invoice.tax_rate
    )
    invoice.subtotal_cents = subtotal
    invoice.tax_cents = tax
    invoice.total_cents = total


def _touch(invoice: Invoice) -> None:
    # onupdate only fires when a column of the row itself changes
    invoice.updated_at = datetime.now(timezone.utc)


def _get_invoice_or_404(invoice_id: int):
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        return None, (jsonify({"error": "not_found", "message": "invoice not found"}), 404)
    return invoice, None


def _commit(action: str):
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to %s", action, exc_info=exc)
        return jsonify({"error": "database_error"}), 500
    return None


# --- Clients ---


@bp_billing.get("/artist/clients")
@artist_required
def list_clients() -> tuple[dict[str, object], int]:
    client_type = (request.args.get("type") or "").strip().lower()
    query = Client.query
    if client_type:
        query = query.filter(Client.type == client_type)
    clients = query.order_by(Client.name.asc()).all()
    return jsonify({"clients": [c.to_dict() for c in clients]}), 200


@bp_billing.get("/artist/clients/<int:client_id>")
@artist_required
def get_client(client_id: int) -> tuple[dict[str, object], int]:
    client = db.session.get(Client, client_id)
    if client is None:
        return jsonify({"error": "not_found", "message": "client not found"}), 404

    data = client.to_dict()
    data["invoices"] = [
        {"id": inv.invoice_id, "invoice_number": inv.invoice_number,
         "status": inv.status, "total_cents": inv.total_cents}
        for inv in client.invoices.order_by(Invoice.issue_date.desc())
    ]
    return jsonify({"client": data}), 200


@bp_billing.post("/artist/clients")
@artist_required
def add_client() -> tuple[dict[str, object], int]:
    payload = request.get_json(silent=True) or {}

    name = (payload.get("name") or "").strip()
    email = (payload.get("email") or "").strip().lower()
    client_type = (payload.get("type") or "other").strip().lower()

    if not name or not email:
        return jsonify({"error": "invalid_payload", "message": "name and email are required"}), 400
    if client_type not in CLIENT_TYPES:
        return jsonify({"error": "invalid_payload", "message": f"type must be one of {', '.join(CLIENT_TYPES)}"}), 400

    client = Client(name=name, email=email, type=client_type)
    for field in CLIENT_FIELDS:
        setattr(client, field, (payload.get(field) or "").strip() or None)

    db.session.add(client)
    error = _commit("create client")
    if error:
        return error

    return jsonify({"message": "Client created", "client": client.to_dict()}), 201


@bp_billing.put("/artist/clients/<int:client_id>")
@artist_required
def update_client(client_id: int) -> tuple[dict[str, object], int]:
    client = db.session.get(Client, client_id)
    if client is None:
        return jsonify({"error": "not_found", "message": "client not found"}), 404

    payload = request.get_json(silent=True) or {}

    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            return jsonify({"error": "invalid_payload", "message": "name cannot be empty"}), 400
        client.name = name
    if "email" in payload:
        email = (payload.get("email") or "").strip().lower()
        if not email:
            return jsonify({"error": "invalid_payload", "message": "email cannot be empty"}), 400
        client.email = email
    if "type" in payload:
        client_type = (payload.get("type") or "").strip().lower()
        if client_type not in CLIENT_TYPES:
            return jsonify({"error": "invalid_payload", "message": "unknown client type"}), 400
        client.type = client_type
    for field in CLIENT_FIELDS:
        if field in payload:
            setattr(client, field, (payload.get(field) or "").strip() or None)

    error = _commit("update client")
    if error:
        return error

    return jsonify({"message": "Client updated", "client": client.to_dict()}), 200


# --- Invoices ---


@bp_billing.get("/artist/invoices")
@artist_required
def list_invoices() -> tuple[dict[str, object], int]:
    """List invoices filtered by status, issue date range or free-text search.
    ---
    tags:
      - Billing
    parameters:
      - name: status
        in: query
        type: string
        enum: [draft, sent, viewed, paid, overdue, cancelled]
      - name: start
        in: query
        type: string
        description: Earliest issue date (inclusive)
      - name: end
        in: query
        type: string
        description: Latest issue date (inclusive)
      - name: q
        in: query
        type: string
        description: Matches invoice number, client name or item description
    """
    status = (request.args.get("status") or "").strip().lower()
    search_text = (request.args.get("q") or "").strip()

    if status and status not in INVOICE_STATUSES:
        return jsonify({"error": "invalid_payload", "message": "unknown status"}), 400

    try:
        start = _parse_date(request.args["start"], "start") if request.args.get("start") else None
        end = _parse_date(request.args["end"], "end") if request.args.get("end") else None
    except PayloadError as exc:
        return jsonify({"error": "invalid_payload", "message": str(exc)}), 400

    try:
        query = Invoice.query.join(Client, Invoice.client_id == Client.client_id)
        if status:
            query = query.filter(Invoice.status == status)
        if start:
            query = query.filter(Invoice.issue_date >= start)
        if end:
            query = query.filter(Invoice.issue_date <= end)
        invoices = query.order_by(Invoice.issue_date.desc(), Invoice.invoice_id.desc()).all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch invoices", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    if search_text:
        invoices = [inv for inv in invoices if billing.invoice_matches(inv, search_text)]

    return jsonify({"invoices": [inv.to_dict() for inv in invoices]}), 200


@bp_billing.get("/artist/invoices/stats")
@artist_required
def get_invoice_stats() -> tuple[dict[str, object], int]:
    try:
        invoices = Invoice.query.all()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to compute invoice stats", exc_info=exc)
        return jsonify({"error": "database_error"}), 500
    return jsonify({"stats": billing.invoice_stats(invoices, today())}), 200


@bp_billing.get("/artist/invoices/<int:invoice_id>")
@artist_required
def get_invoice(invoice_id: int) -> tuple[dict[str, object], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error
    return jsonify({"invoice": invoice.to_dict()}), 200


@bp_billing.post("/artist/invoices")
@artist_required
def create_invoice() -> tuple[dict[str, object], int]:
    """Create an invoice; amounts, tax and totals are computed server side."""
    payload = request.get_json(silent=True) or {}

    client = None
    if payload.get("client_id") is not None:
        try:
            client = db.session.get(Client, int(payload["client_id"]))
        except (TypeError, ValueError):
            client = None
    if client is None:
        return jsonify({"error": "invalid_payload", "message": "client_id must reference an existing client"}), 400

    try:
        issue_date = _parse_date(payload["issue_date"], "issue_date") if payload.get("issue_date") else today()
        payment_terms = (payload.get("payment_terms") or "Net 30").strip()
        if payload.get("due_date"):
            due_date = _parse_date(payload["due_date"], "due_date")
        else:
            due_date = billing.due_date_for(issue_date, payment_terms)
        if due_date < issue_date:
            raise PayloadError("due_date cannot be before issue_date")
        tax_rate = _parse_tax_rate(payload.get("tax_rate", current_app.config["DEFAULT_TAX_RATE"]))
        status = (payload.get("status") or "draft").strip().lower()
        if status not in INVOICE_STATUSES:
            raise PayloadError("unknown status")
        items = _build_line_items(payload.get("items"))
    except PayloadError as exc:
        return jsonify({"error": "invalid_payload", "message": str(exc)}), 400

    invoice = Invoice(
        client_id=client.client_id,
        status=status,
        issue_date=issue_date,
        due_date=due_date,
        payment_terms=payment_terms,
        tax_rate=tax_rate,
        notes=(payload.get("notes") or "").strip() or None,
        reminders_sent=0,
        items=items,
    )
    if status == "sent":
        invoice.sent_date = today()
    _recalculate(invoice)

    try:
        invoice.invoice_number = billing.next_invoice_number(issue_date.year)
        db.session.add(invoice)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Invoice number collision: %s", exc)
        return jsonify({"error": "conflict", "message": "invoice number already in use, retry"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create invoice", exc_info=exc)
        return jsonify({"error": "database_error"}), 500

    return jsonify({"message": "Invoice created", "invoice": invoice.to_dict()}), 201


@bp_billing.put("/artist/invoices/<int:invoice_id>")
@artist_required
def update_invoice(invoice_id: int) -> tuple[dict[str, object], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error

    payload = request.get_json(silent=True) or {}

    try:
        if "client_id" in payload:
            try:
                client = db.session.get(Client, int(payload["client_id"]))
            except (TypeError, ValueError):
                client = None
            if client is None:
                raise PayloadError("client_id must reference an existing client")
            invoice.client_id = client.client_id
        if "status" in payload:
            status = (payload.get("status") or "").strip().lower()
            if status not in INVOICE_STATUSES:
                raise PayloadError("unknown status")
            invoice.status = status
        if "issue_date" in payload:
            invoice.issue_date = _parse_date(payload["issue_date"], "issue_date")
        if "payment_terms" in payload:
            invoice.payment_terms = (payload.get("payment_terms") or "Net 30").strip()
            if "due_date" not in payload:
                invoice.due_date = billing.due_date_for(invoice.issue_date, invoice.payment_terms)
        if "due_date" in payload:
            invoice.due_date = _parse_date(payload["due_date"], "due_date")
        if invoice.due_date < invoice.issue_date:
            raise PayloadError("due_date cannot be before issue_date")
        if "notes" in payload:
            invoice.notes = (payload.get("notes") or "").strip() or None
        if "tax_rate" in payload:
            invoice.tax_rate = _parse_tax_rate(payload["tax_rate"])
        if "items" in payload:
            invoice.items = _build_line_items(payload["items"])
    except PayloadError as exc:
        db.session.rollback()
        return jsonify({"error": "invalid_payload", "message": str(exc)}), 400

    previous_total = invoice.total_cents
    _recalculate(invoice)
    if invoice.total_cents != previous_total:
        # an intent created for the old total can no longer settle this invoice
        invoice.payment_intent_id = None
    _touch(invoice)

    error = _commit("update invoice")
    if error:
        return error
    return jsonify({"message": "Invoice updated", "invoice": invoice.to_dict()}), 200


@bp_billing.delete("/artist/invoices/<int:invoice_id>")
@artist_required
def delete_invoice(invoice_id: int) -> tuple[dict[str, str], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error

    db.session.delete(invoice)
    error = _commit("delete invoice")
    if error:
        return error
    return jsonify({"message": "Invoice deleted"}), 200


@bp_billing.post("/artist/invoices/<int:invoice_id>/send")
@artist_required
def send_invoice(invoice_id: int) -> tuple[dict[str, object], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error
    if invoice.status in ("paid", "cancelled"):
        return jsonify({"error": "conflict", "message": f"invoice is already {invoice.status}"}), 409

    invoice.status = "sent"
    invoice.sent_date = today()
    _touch(invoice)

    error = _commit("send invoice")
    if error:
        return error
    return jsonify({"message": "Invoice sent", "invoice": invoice.to_dict()}), 200


@bp_billing.post("/artist/invoices/<int:invoice_id>/mark-paid")
@artist_required
def mark_as_paid(invoice_id: int) -> tuple[dict[str, object], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error

    payload = request.get_json(silent=True) or {}
    payment_method = (payload.get("payment_method") or "").strip()
    if not payment_method:
        return jsonify({"error": "invalid_payload", "message": "payment_method is required"}), 400

    try:
        paid_date = _parse_date(payload["paid_date"], "paid_date") if payload.get("paid_date") else today()
    except PayloadError as exc:
        return jsonify({"error": "invalid_payload", "message": str(exc)}), 400

    invoice.status = "paid"
    invoice.paid_date = paid_date
    invoice.payment_method = payment_method
    _touch(invoice)

    error = _commit("mark invoice paid")
    if error:
        return error
    return jsonify({"message": "Invoice marked as paid", "invoice": invoice.to_dict()}), 200


@bp_billing.post("/artist/invoices/<int:invoice_id>/remind")
@artist_required
def send_reminder(invoice_id: int) -> tuple[dict[str, object], int]:
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error

    invoice.reminders_sent = (invoice.reminders_sent or 0) + 1
    invoice.last_reminder_at = datetime.now(timezone.utc)
    _touch(invoice)

    error = _commit("record invoice reminder")
    if error:
        return error
    return jsonify({"message": "Reminder recorded", "invoice": invoice.to_dict()}), 200


# --- Online payment ---


@bp_billing.post("/artist/invoices/<int:invoice_id>/payment-intent")
@artist_required
def create_payment_intent(invoice_id: int) -> tuple[dict[str, object], int]:
    """Create a Stripe PaymentIntent for the invoice total.
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    responses:
      200:
        description: Payment intent created; returns client secret
      404:
        description: Invoice not found
      409:
        description: Invoice already paid or cancelled
      500:
        description: Payments not configured or Stripe error
    """
    invoice, error = _get_invoice_or_404(invoice_id)
    if error:
        return error
    if invoice.status in ("paid", "cancelled"):
        return jsonify({"error": "conflict", "message": f"invoice is already {invoice.status}"}), 409
    if invoice.total_cents <= 0:
        return jsonify({"error": "invalid_invoice", "message": "invoice total must be positive"}), 400

    stripe_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not stripe_key:
        current_app.logger.warning("Stripe secret key not configured")
        return jsonify({"error": "server_error", "message": "Online payments are not available."}), 500

    stripe.api_key = stripe_key
    try:
        intent = stripe.PaymentIntent.create(
            amount=int(invoice.total_cents),
            currency=current_app.config.get("STRIPE_CURRENCY", "usd"),
            description=f"Invoice {invoice.invoice_number}",
            metadata={
                "invoice_id": str(invoice.invoice_id),
                "invoice_number": invoice.invoice_number,
            },
        )
    except stripe.StripeError as exc:
        current_app.logger.exception("Stripe API error while creating payment intent", exc_info=exc)
        return jsonify({"error": "payment_error", "message": "An error occurred while processing the payment."}), 500

    invoice.payment_intent_id = intent.id
    error = _commit("store payment intent")
    if error:
        return error

    return jsonify({"client_secret": intent.client_secret, "payment_intent_id": intent.id}), 200


@bp_billing.post("/stripe-webhook")
def stripe_webhook():
    """Stripe webhook: a succeeded PaymentIntent marks its invoice paid."""
    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")
    webhook_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")

    if not webhook_secret:
        current_app.logger.error("Stripe webhook secret not configured - webhooks will not be processed")
        # 200 keeps Stripe from retrying a configuration problem
        return jsonify({"received": True}), 200

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except ValueError:
        current_app.logger.warning("Invalid webhook payload")
        return jsonify({"error": "invalid_payload"}), 400
    except stripe.SignatureVerificationError:
        current_app.logger.warning("Invalid signature for webhook")
        return jsonify({"error": "invalid_signature"}), 400

    if event.get("type") != "payment_intent.succeeded":
        return jsonify({"received": True}), 200

    data = event.get("data", {}).get("object", {})
    payment_intent_id = data.get("id")
    amount = data.get("amount")
    if not amount or amount <= 0:
        current_app.logger.warning("Webhook event has invalid amount for payment_intent %s", payment_intent_id)
        return jsonify({"received": True}), 200
    metadata = data.get("metadata", {}) or {}

    try:
        invoice = None
        if metadata.get("invoice_id"):
            invoice = db.session.get(Invoice, int(metadata["invoice_id"]))
        if invoice is None and payment_intent_id:
            invoice = Invoice.query.filter_by(payment_intent_id=payment_intent_id).first()
        if invoice is None:
            current_app.logger.info(
                "payment_intent.succeeded %s does not match an invoice; ignoring", payment_intent_id
            )
            return jsonify({"received": True}), 200

        if int(amount) != invoice.total_cents:
            current_app.logger.warning(
                "payment_intent %s paid %s cents but invoice %s totals %s; leaving it unpaid",
                payment_intent_id, amount, invoice.invoice_number, invoice.total_cents,
            )
            return jsonify({"received": True}), 200

        if invoice.status != "paid":
            invoice.status = "paid"
            invoice.paid_date = today()
            invoice.payment_method = "Stripe"
            invoice.payment_intent_id = payment_intent_id
            _touch(invoice)
            db.session.commit()
            current_app.logger.info("Invoice %s paid via Stripe", invoice.invoice_number)
    except (SQLAlchemyError, ValueError, TypeError) as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to record invoice payment from webhook", exc_info=exc)

    return jsonify({"received": True}), 200
