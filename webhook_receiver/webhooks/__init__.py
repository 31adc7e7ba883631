"""Webhook inbound pipeline.

Receives consumption and billing webhooks. Each request is signature-verified
over the raw body, classified by ``data_type``, decoded into its variant,
validated and acknowledged.
"""
