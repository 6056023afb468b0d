"""
Exceptions métier du backend de réservation.

- BookingValidationError: saisie invalide côté client (400).
- IntegrationError: store Supabase ou Stripe injoignable/en refus.
  - StoreUnavailableError (503), PaymentProcessorError (502).
- BookingNotFoundError: identifiant inconnu ou mal formé (404).
- WebhookSignatureError: signature Stripe invalide ou payload illisible (400).
- InvalidBookingRecordError: ligne du store non conforme (statut inconnu, type faux) (500).
Les handlers HTTP associés sont enregistrés dans app_setup.exceptions.
"""


class RentalHubError(Exception):
    status_code = 500

    def __init__(self, message: str, code: str = "error"):
        super().__init__(message)
        self.message = message
        self.code = code


class BookingValidationError(RentalHubError):
    status_code = 400

    def __init__(self, message: str, code: str = "invalid"):
        super().__init__(message, code)


class BookingNotFoundError(RentalHubError):
    status_code = 404

    def __init__(self, booking_id: str):
        super().__init__(f"Réservation introuvable: {booking_id}", "not_found")
        self.booking_id = booking_id


class IntegrationError(RentalHubError):
    status_code = 502


class StoreUnavailableError(IntegrationError):
    status_code = 503

    def __init__(self, message: str = "Store des réservations indisponible"):
        super().__init__(message, "store_unavailable")


class PaymentProcessorError(IntegrationError):
    status_code = 502

    def __init__(self, message: str = "Erreur du processeur de paiement"):
        super().__init__(message, "payment_processor")


class WebhookSignatureError(RentalHubError):
    status_code = 400

    def __init__(self, message: str = "Invalid Stripe webhook payload"):
        super().__init__(message, "invalid_signature")


class InvalidBookingRecordError(RentalHubError):
    status_code = 500

    def __init__(self, booking_id: str, reason: str = ""):
        super().__init__(f"Réservation illisible dans le store: {booking_id}", "invalid_record")
        self.booking_id = booking_id
        self.reason = reason
