"""Access-controlled HTTP gateway to the OWASP ZAP scanning engine."""
