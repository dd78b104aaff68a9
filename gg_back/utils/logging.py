def mask_email(email):
    """이메일 마스킹"""
    if not email or '@' not in email:
        return email
    prefix, domain = email.rsplit('@', 1)
    masked_prefix = prefix[:2] + '*' * (len(prefix) - 2)
    return f"{masked_prefix}@{domain}"


def mask_sensitive_data(data):
    """딕셔너리 내 민감 정보 일괄 마스킹"""
    if not isinstance(data, dict):
        return data

    masked_data = data.copy()
    if 'email' in masked_data:
        masked_data['email'] = mask_email(masked_data['email'])
    for key in ('password', 'token', 'secret'):
        if key in masked_data:
            masked_data[key] = '********'

    return masked_data
