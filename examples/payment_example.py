"""
Swish Client Examples
Demonstrates configuring the client and running payments and refunds
"""

import logging

from swish_client import (
    ApiError,
    CancellationToken,
    ClientConfig,
    ConfigValidator,
    PaymentRecord,
    SwishClient,
    SwishEnvironment,
)


# =============================================================================
# Example 1: Programmatic Configuration
# =============================================================================

def programmatic_config_example() -> ClientConfig:
    """Configure the client with the sandbox test certificates"""
    return ClientConfig(
        environment=SwishEnvironment.TEST,  # Use PRODUCTION for live
        p12="./certs/Swish_Merchant_TestCertificate_1234679304.p12",
        passphrase="swish",
        root="./certs/Swish_TLS_RootCA.pem",
        timeout=30000,
    )


# =============================================================================
# Example 2: Client from File + Environment
# =============================================================================

def file_config_example() -> SwishClient:
    """
    Build a client from a JSON file, overridable from the environment

    export SWISH_ENVIRONMENT="production"
    export SWISH_PASSPHRASE="..."

    Keyword overrides win over both; credential paths in the file are
    relative to the file itself.
    """
    return SwishClient.load("./config/swish_config.json", timeout=60000)


# =============================================================================
# Example 3: Payment Request
# =============================================================================

def payment_example(client: SwishClient) -> PaymentRecord:
    """Create a payment request and read back its status"""
    created = client.create_payment(PaymentRecord(
        payee_payment_reference="0123456789",
        callback_url="https://example.com/swish/callback",
        payer_alias="4671234768",
        payee_alias="1234679304",
        amount="100.00",
        currency="SEK",
        message="Kingston USB Flash Drive 8 GB",
    ))
    print(f"Created payment request {created.id}")

    payment = client.get_payment(created.id)
    print(f"Status: {payment.status}")
    return payment


# =============================================================================
# Example 4: Refund with Cancellation
# =============================================================================

def refund_example(client: SwishClient, payment: PaymentRecord) -> None:
    """Refund a paid payment; the token can be cancelled from another thread"""
    token = CancellationToken()

    try:
        refund = client.create_refund(
            PaymentRecord(
                original_payment_reference=payment.payment_reference,
                callback_url="https://example.com/swish/refund-callback",
                payer_alias="1234679304",
                amount="100.00",
                currency="SEK",
                message="Refund for Kingston USB Flash Drive 8 GB",
            ),
            cancel_token=token,
        )
    except ApiError as e:
        print(f"Refund rejected: {e.error_code} {e}")
        return

    print(f"Refund status: {client.get_refund(refund.id).status}")


# =============================================================================
# Example 5: Configuration Validation
# =============================================================================

def validation_example() -> None:
    """Validate configuration before use"""
    validator = ConfigValidator()

    result = validator.validate({"p12": "./certs/client.p12"})

    if not result.valid:
        print("Configuration validation failed:")
        for error in result.errors:
            print(f"  - {error.field}: {error.message}")


# =============================================================================
# Run Examples
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("=== Swish Client Examples ===\n")

    print("1. Configuration Validation:")
    validation_example()
    print()

    print("2. Payment and Refund:")
    with SwishClient(programmatic_config_example()) as client:
        paid = payment_example(client)
        if paid.status == "PAID":
            refund_example(client, paid)
