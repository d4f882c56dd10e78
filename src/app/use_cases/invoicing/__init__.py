"""Invoicing domain use cases"""
from .create_invoice import CreateInvoice
from .update_invoice import UpdateInvoice
from .replace_invoice_items import ReplaceInvoiceItems
from .send_invoice import SendInvoice
from .cancel_invoice import CancelInvoice
from .get_invoice import GetInvoice, ListInvoices
from .view_invoice_by_token import ViewInvoiceByToken
from .record_payment import RecordPayment
from .reverse_payment import ReversePayment
from .reconcile_gateway_event import ReconcileGatewayEvent
from .initiate_payment import InitiatePayment
from .process_invoice_collection import ProcessInvoiceCollection
from .mark_overdue_invoices import MarkOverdueInvoices
from .get_dashboard import GetDashboard
from .get_reminder_history import GetReminderHistory
from .reminder_config import ReminderConfig
from .dtos import (
    InvoiceItemInputDTO,
    CreateInvoiceCommandDTO,
    UpdateInvoiceCommandDTO,
    ReplaceInvoiceItemsCommandDTO,
    RecordPaymentCommandDTO,
    ReversePaymentCommandDTO,
    InitiatePaymentCommandDTO,
    GatewayWebhookEventDTO,
    InvoiceResponseDTO,
    InvoiceSummaryDTO,
    SendInvoiceResponseDTO,
    ListInvoicesResponseDTO,
    PaymentDTO,
    PaymentRecordedDTO,
    WebhookAckDTO,
    PaymentInitiationResultDTO,
    ReminderLogDTO,
    InvoiceCollectionOutcomeDTO,
    CollectionRunResultDTO,
    DashboardResponseDTO,
)

__all__ = [
    "CreateInvoice",
    "UpdateInvoice",
    "ReplaceInvoiceItems",
    "SendInvoice",
    "CancelInvoice",
    "GetInvoice",
    "ListInvoices",
    "ViewInvoiceByToken",
    "RecordPayment",
    "ReversePayment",
    "ReconcileGatewayEvent",
    "InitiatePayment",
    "ProcessInvoiceCollection",
    "MarkOverdueInvoices",
    "GetDashboard",
    "GetReminderHistory",
    "ReminderConfig",
    "InvoiceItemInputDTO",
    "CreateInvoiceCommandDTO",
    "UpdateInvoiceCommandDTO",
    "ReplaceInvoiceItemsCommandDTO",
    "RecordPaymentCommandDTO",
    "ReversePaymentCommandDTO",
    "InitiatePaymentCommandDTO",
    "GatewayWebhookEventDTO",
    "InvoiceResponseDTO",
    "InvoiceSummaryDTO",
    "SendInvoiceResponseDTO",
    "ListInvoicesResponseDTO",
    "PaymentDTO",
    "PaymentRecordedDTO",
    "WebhookAckDTO",
    "PaymentInitiationResultDTO",
    "ReminderLogDTO",
    "InvoiceCollectionOutcomeDTO",
    "CollectionRunResultDTO",
    "DashboardResponseDTO",
]
