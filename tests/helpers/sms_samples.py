"""Sample bank notifications shared across tests."""

AMAZON_DEBIT = (
    "Your account has been debited by Rs.2,500.00 on 15-Jan-25 at AMAZON INDIA. "
    "Available balance: Rs.45,230.50"
)
SALARY_CREDIT = (
    "Rs.75,000.00 credited to your account on 01-Jan-25. Salary from TECH CORP. "
    "Available balance: Rs.1,20,450.75"
)
CHAT = "Hey, are we still on for lunch tomorrow?"
SWIGGY_UPI = "UPI payment of Rs.450 to SWIGGY successful"
