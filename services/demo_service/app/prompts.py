"""
Prompt for demo script generation.
"""
from langchain_core.prompts import PromptTemplate

DEMO_SCRIPT_PROMPT = PromptTemplate.from_template("""You are an expert demo script writer for {product_name}. Your task is to generate a step-by-step demo script based on user context.

**Output Format:**
Return ONLY a valid JSON object. Do not include any other text, Markdown formatting, or code fences like ```json.

**JSON Schema:**
{{
  "summary": "A concise, one-paragraph summary of the demo flow, scenario, and goals based on the user context.",
  "title": "A creative and professional title for the demo.",
  "introduction": "A brief, welcoming presenter talking script to kick off the demo. Use placeholders like {{demoUserFirstName}}.",
  "prerequisites": ["A clear, concise instruction for a prerequisite step. For example, 'Ensure an email with the subject Q3 Project Proposal is in the user's inbox.'"],
  "steps": [
    {{
      "step_title": "Concise title for this step (e.g., 'Step 1: Drafting a Response in Gmail')",
      "action": "A direct, imperative instruction for the presenter to perform (e.g., 'Open a new Incognito browser window.').",
      "ui_interaction": "Detailed, step-by-step instructions on how to perform the actions in the UI.",
      "presenter_script": "The presenter's talking points for this step. This should explain the 'why' behind the actions."
    }}
  ]
}}

**CRITICAL RULES:**
- The entire output MUST be a single, valid JSON object.
- Do NOT include any unescaped quotation marks (single or double) within string values.
- Do NOT use markdown like asterisks or backticks. Provide only raw text.
- If there are no specific prerequisites for the demo, provide one generic one like "Practice the script before the live demo."
- The "prerequisites" field must be a top-level key and its value must be an array of strings.

**Demo User & Context:**
* First Name: {first_name}
* Last Name: {last_name}
* Email: {email}
* Customer Needs: "{context}"

Generate the JSON object now.
""")


def build_demo_script_prompt(
    context: str,
    first_name: str,
    last_name: str,
    email: str,
    product_name: str = "Google Workspace",
) -> str:
    """Render the generation prompt for one demo user. Pure, no I/O."""
    return DEMO_SCRIPT_PROMPT.format(
        product_name=product_name,
        first_name=first_name,
        last_name=last_name,
        email=email,
        context=context,
    )
