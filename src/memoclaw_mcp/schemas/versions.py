from enum import IntEnum


class X402Version(IntEnum):
    V1 = 1
    V2 = 2

    @classmethod
    def from_value(cls, value):
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unsupported x402 version: {value}")


# Header names used by each protocol version.
PAYMENT_REQUIRED_HEADER = "PAYMENT-REQUIRED"
PAYMENT_SIGNATURE_HEADER = "PAYMENT-SIGNATURE"
X_PAYMENT_HEADER = "X-PAYMENT"
