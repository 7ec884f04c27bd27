"""Internal implementation of `~certbot_dns_cyon.dns_cyon` plugin."""
