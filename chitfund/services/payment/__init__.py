"""
Payment services package.

- recorder: PaymentRecorder (completed and failed period payments)
- tracker: PaymentTracker (paid periods, downline period report)
- initiation: PaymentInitiationService (gateway invoices and callbacks)
- status: derived card payment status
"""

from chitfund.services.payment.initiation import (
    GatewayResponse,
    PaymentGateway,
    PaymentInitiationService,
)
from chitfund.services.payment.recorder import PaymentRecorder, PaymentResult
from chitfund.services.payment.status import (
    PaymentStatusCalculator,
    derive_payment_status,
)
from chitfund.services.payment.tracker import DownlinePayment, PaymentTracker


__all__ = [
    "GatewayResponse",
    "PaymentGateway",
    "PaymentInitiationService",
    "PaymentRecorder",
    "PaymentResult",
    "PaymentStatusCalculator",
    "derive_payment_status",
    "DownlinePayment",
    "PaymentTracker",
]
