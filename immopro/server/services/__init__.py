"""
Service layer of the ImmoPro server.

Modules:
    deps: authentication, role and subscription dependencies
    plan_limits: subscription plan limit dependencies
    email_service: transactional email through Resend
    email_templates: HTML bodies of every email
    push_service: browser notifications through web push
    notification_service: multi-channel notifications and their journal
    subscription_emails: billing lifecycle emails
    stripe_service: Stripe API calls
    stripe_webhooks: Stripe webhook event processing
    geocoding: address geocoding through Nominatim
    activity: agent activity log
"""
