"""Syndicate domain: firms, deals, partner matching and the invitation/NDA lifecycle."""
