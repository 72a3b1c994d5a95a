# constants.py
# Keyword tables for description cleanup, income/expense classification and
# expense categorisation. Order matters everywhere: first match wins.

import re

# --- Boilerplate stripped from OCR descriptions ---
BOILERPLATE_PATTERNS = [
    re.compile(r"\b(?:Transaction Date|Posting Date|Effective Date)[:\s]*\d{1,2}[-/. ]\d{1,2}(?:[-/. ]\d{2,4})?", re.I),
    re.compile(r"\b(?:Card No\.?|Account Number|Member Number|Account ending in)[:\s]*[X\d\s*-]+", re.I),
    re.compile(r"\b(?:Reference Number|Transaction ID|Ref #|Trace Number|Auth Code|Authorization #|Approval Code)[\s:]*[\w-]+", re.I),
    re.compile(r"\bInvoice Number\s+[\w-]+\s*", re.I),
    re.compile(r"\b(?:Web ID|PPD ID)[\s:]*\S+", re.I),
    re.compile(r"\b(?:Purchase from merchant|Payment to merchant)\b", re.I),
    re.compile(r"\b(?:Online|Internet) payment\b(?!\s+thank you)", re.I),
    re.compile(r"\bWeb payment(?:\s+to)?\b", re.I),
    re.compile(r"^(?:CHECKCARD PURCHASE|POS DEBIT|ACH DEBIT|DEBIT CARD PURCHASE|ONLINE TRANSFER TO)\s+", re.I),
    # stray amounts left inside the description column
    re.compile(r"\bAmount:\s*\$?[0-9,]+(?:\.\d{2})?\b", re.I),
    re.compile(r"\$[0-9,]+(?:\.\d{2})?(?=\s|$)"),
    re.compile(r"\b\d+\.\d{2}\b"),
]

# Multi-word forms are expanded before the single-token table.
PHRASE_EXPANSIONS = [
    (re.compile(r"\bSVC CHG\b", re.I), "Service Charge"),
    (re.compile(r"\bP\.O\.S\.", re.I), "POS"),
    (re.compile(r"\bP O S\b", re.I), "POS"),
]

ABBREVIATIONS = {
    "PMT": "Payment",
    "PYMT": "Payment",
    "XFER": "Transfer",
    "DEPT": "Department",
    "SVC": "Service",
    "TRN": "Transaction",
    "REF": "Reference",
    "ACCT": "Account",
    "PUR": "Purchase",
    "WD": "Withdrawal",
    "DEP": "Deposit",
    "BAL": "Balance",
    "STMT": "Statement",
    "RECD": "Received",
}

# --- Classification ---
P2P_SERVICES = ["zelle", "venmo", "cash app", "paypal"]
P2P_INCOME_WORDS = ["from"]
P2P_EXPENSE_WORDS = ["to", "payment"]

INVESTMENT_KEYWORDS = [
    "vanguard", "fidelity", "schwab", "investment", "etf", "mutual fund",
    "stocks", "bonds", "401k", "ira", "retirement",
]

INCOME_KEYWORDS = [
    "payroll", "direct deposit", "salary", "interest earned", "interest paid",
    "refund", "deposit from", "transfer from", "dfas-in", "payment from",
    "cash deposit", "mobile deposit", "deposit", "payment received",
    "dividend", "reimbursement", "cashback reward",
]

EXPENSE_KEYWORDS = [
    "payment to", "purchase", "withdraw", "withdrawal",
    "debit", "atm", "fee", "bill", "bill pay", "transfer to", "ach payment",
    "amex payment", "chase payment", "utility", "insurance", "recurring payment",
    "subscription", "service fee", "online purchase", "pos debit",
    "interest charge",
]

# --- Categorisation (expenses only) ---
CREDIT_CARD_PAYMENT = "Credit Card Payment"
OTHER_EXPENSES = "Other Expenses"
INCOME_CATEGORY = "Income"
UNCATEGORIZED = "Uncategorized"

CREDIT_CARD_PHRASES = [
    "payment to chase card", "amex e-payment", "bill pay to citi card",
    "credit card payment", "online payment thank you",
    "autopay payment",
]

CATEGORY_RULES = [
    ("Rent", ["rent", "mortgage", "housing", "newrez-shellpoin", "property management"]),
    ("Pet Care", ["petco", "petsmart", "vet", "veterinarian", "pet food", "dog food", "cat food"]),
    ("Groceries", [
        "grocery", "trader", "whole foods", "safeway", "food", "supermarket",
        "market", "aldi", "lidl", "publix", "kroger",
    ]),
    ("Utilities", [
        "utility", "comcast", "electric", "water", "gas bill", "gas company",
        "internet", "pge", "pg&e", "con edison", "spectrum", "verizon fios",
        "trash", "recycling",
    ]),
    ("Transport", [
        "uber", "lyft", "transit", "parking", "gas station", "shell", "chevron",
        "gasoline", "fuel", "metro", "subway", "taxi", "toll",
    ]),
    ("Entertainment", [
        "netflix", "spotify", "hulu", "disney", "movie", "theatre", "restaurant",
        "bar", "cafe", "ticketmaster", "eventbrite", "amc", "regal", "starbucks",
        "coffee shop", "dining",
    ]),
    ("Healthcare", [
        "pharmacy", "cvs", "walgreens", "doctor", "dentist", "dental",
        "hospital", "urgent care", "health insurance",
    ]),
    ("Shopping", ["amazon", "target", "walmart", "wal-mart", "best buy", "macys", "online shopping", "retail"]),
    ("Education", ["tuition", "student loan", "coursera", "udemy", "books", "bookstore", "campus"]),
    ("Home Improvement", ["home depot", "lowes", "lowe's", "ace hardware", "hardware"]),
    ("Personal Care", ["salon", "barber", "barbershop", "haircut", "spa"]),
    ("Insurance", ["state farm", "geico", "progressive", "allstate", "car insurance", "home insurance"]),
    ("Childcare", ["daycare", "preschool", "babysitter"]),
    ("Gifts & Donations", ["gift", "donation", "charity", "church"]),
]
