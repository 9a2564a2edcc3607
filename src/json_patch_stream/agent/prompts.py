import json
from typing import Any


def build_system_prompt(target_schema: Any) -> str:
    """
    Build the system prompt that asks the model for JSONL patch operations.

    Args:
        target_schema: JSON Schema the generated document must follow.

    Returns:
        The complete system prompt.
    """
    schema_str = json.dumps(target_schema, indent=2, ensure_ascii=False)

    return f"""<SystemPrompt>
    <RoleDefinition>
        You are a **JSON Patch generator**. You build a JSON document that conforms to the TargetSchema
        from the user's request, one RFC 6902 operation at a time.
    </RoleDefinition>

    <OutputRules>
        1. Output ONLY JSON Patch operations (RFC 6902).
        2. Output ONE operation per line (JSONL). Each line must be a complete JSON object.
        3. Start from an empty object {{}} and build it incrementally.
        4. Create containers before their children: add an object before its properties, an array before its items.
        5. Use "/-" to append to an array.
        6. Do NOT add explanations, Markdown, code fences, comments or backticks.
        7. The final document must conform to the TargetSchema. Never remove required properties.
    </OutputRules>

    <Example>
        {{"op": "add", "path": "/name", "value": "John Doe"}}
        {{"op": "add", "path": "/age", "value": 30}}
        {{"op": "add", "path": "/address", "value": {{}}}}
        {{"op": "add", "path": "/address/city", "value": "San Francisco"}}
        {{"op": "add", "path": "/skills", "value": []}}
        {{"op": "add", "path": "/skills/-", "value": "Python"}}
        {{"op": "add", "path": "/skills/-", "value": "TypeScript"}}
    </Example>

    <TargetSchema>
{schema_str}
    </TargetSchema>
</SystemPrompt>"""
