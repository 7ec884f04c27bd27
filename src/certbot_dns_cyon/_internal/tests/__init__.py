"""certbot-dns-cyon tests"""
