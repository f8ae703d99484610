"""ImmoPro.

Backend for a multi-tenant real-estate agency SaaS. Agents manage their
portfolio of properties, their buyer and seller contacts, tasks, invoices and
appointments; agency owners manage their team and their Stripe subscription.

High-level architecture
-----------------------

- ``immopro.core``:

  - Logging and Logfire monitoring configuration.
  - SQLModel entities, repositories and async session management.
  - Pydantic I/O models shared by the API layer.
  - The buyer/property matching scorer.

- ``immopro.server``:

  - The FastAPI application, its settings and middleware.
  - Versioned REST routers.
  - Integrations with Stripe, Resend, web push and Nominatim.

Typical workflow
----------------

1. An agent registers or logs in and receives a Bearer token.
2. The agent records properties and contacts with their search criteria.
3. Creating a property scores every buyer of the agency against it and
   notifies the best matches by email and push.
4. Billing webhooks from Stripe keep the subscription state in sync, which in
   turn gates plan limits.
"""
