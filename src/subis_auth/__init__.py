"""SUBIS Auth - OTP-gated account registration and sign-in."""
