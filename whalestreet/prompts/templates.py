"""
Prompt templates for the game studio flows.
Placeholders use ChatPromptTemplate syntax; literal braces are doubled.
"""

ENHANCE_PROMPT = """You are an expert game designer. Your task is to enhance a user's initial game idea prompt to make it more detailed and creative, ensuring the generated game aligns better with their vision.

## Original Prompt:
{original_prompt}

## OUTPUT FORMAT:
Return ONLY a JSON object:
{{"enhanced_prompt": "<the enhanced game idea>"}}

/no_think
"""

GENERATE_GAME_PROMPT = """You are a game developer AI. You take a game idea and generate the HTML, CSS, and JavaScript code for it.

## Game Idea:
{game_idea}

## REQUIREMENTS:
- The HTML must include all necessary elements (body content only, no <html>, <head> or <body> tags).
- The CSS must style those elements appropriately.
- The JavaScript must provide the complete game logic and run without ReferenceError.
- The game must be playable in a web browser as soon as the three parts are combined.
- Keep code concise and well-commented.
- Also write a brief description of the game and how to play it.

## OUTPUT FORMAT:
Return ONLY a JSON object with exactly these string fields:
{{
  "html_code": "<HTML markup>",
  "css_code": "<CSS rules>",
  "js_code": "<JavaScript source>",
  "game_description": "<brief description and how to play>"
}}
No markdown, no commentary outside the JSON.

/no_think
"""

IMPROVE_GAME_PROMPT = """You are a game developer tasked with improving an existing HTML5 game based on user feedback.

## Current Game Code:
```html
{current_game_code}
```

## Requested Changes:
{user_request}

## Current Game Description:
{game_description}

Implement the requested changes, ensuring that the game remains functional and adheres to web standards. Also update the game description with any relevant changes.

## OUTPUT FORMAT:
Return ONLY a JSON object with exactly these string fields:
{{
  "improved_game_code": "<the complete improved HTML document, with CSS in one <style> tag and JavaScript in <script> tags>",
  "review": "<the changes made and any potential issues>",
  "updated_game_description": "<updated description and how to play>"
}}
The improved code must be complete and runnable.

/no_think
"""

GAME_BRIEF_PROMPT = """You are an expert game designer. Generate a brief description of the game, including the rules and how to play, so other users can understand the game.

Game Name: {game_name}
Game Description: {game_description}
Game Rules: {game_rules}

## OUTPUT FORMAT:
Return ONLY a JSON object:
{{"game_brief": "<brief description, rules and how to play>"}}

/no_think
"""
