import decimal

# 21M BTC in satoshis is 16 digits, leave plenty of room for intermediate values
PRECISION = 40


def set_decimal_context():
    decimal.DefaultContext.prec = PRECISION
    decimal.DefaultContext.traps[decimal.FloatOperation] = True
    decimal.DefaultContext.traps[decimal.InvalidOperation] = True
    decimal.DefaultContext.traps[decimal.DivisionByZero] = True
    decimal.setcontext(decimal.DefaultContext)
