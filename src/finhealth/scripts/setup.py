"""
Interactive Garmin setup for the Garmin sleep provider.

Prompts for Garmin credentials once, exchanges them for OAuth tokens, and
saves the tokens to ~/.finhealth/garmin_session/ with owner-only
permissions. The password itself is never written anywhere.

Usage:
    python -m finhealth setup

Re-run any time the session expires.
"""
import getpass
import sys

from finhealth.garmin.auth import GarminAuth


def run_setup(auth: GarminAuth = None) -> None:
    auth = auth or GarminAuth()

    print("\nFinHealth: Garmin setup\n")
    print("Your password will NOT be saved to disk.")
    print(f"Tokens will be stored in: {auth.tokens_dir}\n")

    if auth.has_session():
        overwrite = input("An existing session was found. Replace it? [y/N] ").strip().lower()
        if overwrite != "y":
            print("Setup cancelled. Existing session unchanged.")
            sys.exit(0)

    email = input("Garmin Connect email: ").strip()
    password = getpass.getpass("Garmin Connect password: ")
    if not email or not password:
        print("Error: email and password are both required.")
        sys.exit(1)

    print("\nAuthenticating with Garmin Connect...")
    try:
        auth.authenticate_and_save(email, password)
    except Exception as exc:
        print(f"\nAuthentication failed: {exc}")
        sys.exit(1)

    print(f"\nTokens saved to {auth.tokens_dir}")
    print("Set SLEEP_PROVIDER=garmin to read sleep straight from Garmin Connect.\n")


if __name__ == "__main__":
    run_setup()
