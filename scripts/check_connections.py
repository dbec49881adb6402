#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the database, SMTP and AI assistant settings.
Usage: python scripts/check_connections.py
"""
import smtplib
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.database import test_db_connection
from app.db.migrations import run_migrations
from app.services.chat_client import get_chat_assistant


def check_smtp(settings) -> bool:
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
        return True
    except (smtplib.SMTPException, OSError) as e:
        print(f"    Error: {e}")
        return False


def main():
    settings = get_settings()
    print("=" * 50)
    print("PLACEMENT PORTAL - CONNECTION CHECK")
    print("=" * 50)

    # Database
    print("\n[1] Checking database...")
    if settings.database_url:
        print(f"    URL: {settings.database_url}")
    else:
        print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    if test_db_connection():
        print("    Database: CONNECTED")
        applied = run_migrations()
        print(f"    Migrations applied now: {applied or 'none (schema up to date)'}")
    else:
        print("    Database: FAILED")

    # SMTP
    print("\n[2] Checking SMTP...")
    if settings.smtp_configured:
        print(f"    Server: {settings.smtp_host}:{settings.smtp_port}")
        print("    SMTP: CONNECTED" if check_smtp(settings) else "    SMTP: FAILED")
    else:
        print("    SMTP: not configured (verification codes will not be emailed)")

    # DeepSeek
    print("\n[3] Checking DeepSeek API...")
    if settings.deepseek_api_key:
        print(f"    Base URL: {settings.deepseek_base_url}")
        if get_chat_assistant().test_connection():
            print("    DeepSeek: CONNECTED")
        else:
            print("    DeepSeek: FAILED")
    else:
        print("    DeepSeek: API key not configured (assistant disabled)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
