"""LLM prompt templates for utterance and document extraction.

Utterance prompts go out with a structured-output schema (see
extraction/langchain_extractor.py); document prompts are sent alongside the
uploaded image and must come back as a bare JSON object.
"""

UTTERANCE_SYSTEM_PROMPT = (
    "You are a data extraction assistant for an Indian loan marketplace chatbot. "
    "Extract only the requested field from the user's message. "
    "If the field is not present, leave it as null. Never invent values."
)

UTTERANCE_PROMPTS: dict[str, str] = {
    "name": (
        "Extract just the person's name. Remove greetings and lead-ins like "
        "'Hello', 'Hi', \"I'm\", 'My name is'."
    ),
    "loan_type": (
        "Extract the loan type. The available loan types are: "
        "Personal, Business, Home, Vehicle, Education, Gold."
    ),
    "loan_amount": (
        "Extract the loan amount in Indian Rupees and convert it to a plain number. "
        "Examples: '5 lakh' → 500000, '10 lakhs' → 1000000, '50 thousand' → 50000, "
        "'2 crore' → 20000000, '5,00,000' → 500000, '₹5 lakh' → 500000."
    ),
    "phone_or_pan": (
        "Extract either a phone number (exactly 10 digits) or a PAN card number "
        "(format ABCDE1234F: 5 letters, 4 digits, 1 letter)."
    ),
}

_DOCUMENT_FIELDS: dict[str, str] = {
    "aadhar": "name, dateOfBirth, address, aadharNumber",
    "pan": "name, dateOfBirth, panNumber",
    "bank_statement": (
        "incomeSummary (monthlyIncome, annualIncome), "
        "expenseSummary (monthlyExpenses, categories as object), savings, "
        "emiObligations (totalEMI, loans array with lender, amount, remainingTenure)"
    ),
    "income_proof": "incomeSummary (monthlyIncome, annualIncome)",
}


def get_utterance_prompt(kind: str, message: str) -> str:
    """Build the human prompt for one utterance field."""
    base = UTTERANCE_PROMPTS[kind]
    return f"{base}\n\nMessage: \"{message}\""


def get_document_prompt(doc_type: str) -> str:
    """Build the extraction prompt sent with a document image."""
    label = doc_type.replace("_", " ")
    fields = _DOCUMENT_FIELDS.get(doc_type, "any relevant information")
    return (
        f"Extract the following information from this {label} document: {fields}. "
        "Return a JSON object with the extracted data. If a field is not found, use null. "
        "Amounts must be plain numbers in rupees.\n\n"
        "Return only valid JSON, no markdown formatting."
    )
