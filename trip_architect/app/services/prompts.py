from __future__ import annotations

import json
from typing import Any

from ..schemas.inputs import GenerateInput, GenerateInputV3

PromptPair = tuple[str, str]


def plan_prompts(payload: GenerateInput) -> PromptPair:
    system_prompt = """You are a professional travel planner. Create a detailed travel itinerary based on the destination and template provided.
The plan should be realistic, well-structured, and include specific times, activities, and helpful notes.
Consider the target audience (engineer or general) when creating the plan.
Every event is a 6-element array: [time, name, activity, type, note, image query]. Use spot/food/work/move for type and null as the image query for anything that is not a spot."""

    options = f"Additional options: {json.dumps(payload.options, ensure_ascii=False)}" if payload.options else ""
    user_prompt = f"""Create a travel plan for {payload.destination} using the {payload.template} template.
{options}

Please generate a complete travel itinerary with daily events including times, activities, types (spot/food/work/move), and notes."""
    return system_prompt, user_prompt


def scouter_prompts(payload: GenerateInput) -> PromptPair:
    system_prompt = """You are a field scout for engineers. Turn the destination into an investigation mission.
Pick ONE real target spot that can be found on Google Maps, describe its engineering atmosphere (structure, texture, industrial aesthetics),
give 2 to 4 concrete quests with specific recommended gear, and one gear recommendation with a specific product name."""

    options = f"Additional options: {json.dumps(payload.options, ensure_ascii=False)}" if payload.options else ""
    user_prompt = f"""Destination: {payload.destination}
Mission style: {payload.template}
{options}"""
    return system_prompt, user_prompt


def input_check_prompts(payload: GenerateInputV3) -> PromptPair:
    system_prompt = """You validate place names for a route planner. Check whether the destination and the base area exist on Google Maps.
If a name does not exist or is ambiguous, correct it to the closest real place and explain why. Otherwise return the input unchanged with reason null."""
    user_prompt = f"Destination: {payload.destination}\nBase area: {payload.base_area}"
    return system_prompt, user_prompt


def optimized_plan_prompts(payload: GenerateInputV3, corrected: dict[str, Any] | None = None) -> PromptPair:
    destination = (corrected or {}).get("destination") or payload.destination
    base_area = (corrected or {}).get("base_area") or payload.base_area
    transport = "rental car" if payload.transportation == "car" else "public transit"

    system_prompt = f"""You plan efficient solo trips. Order the spots of each day to minimise travel by {transport}.
For every day write the events first and only then a Google Maps directions URL
(https://www.google.com/maps/dir/?api=1&origin=...&destination=...&waypoints=...&travelmode={'driving' if payload.transportation == 'car' else 'transit'})
that starts and ends at the base area. Use spot/food/move for event types. image_query must be English in the form "City, Country"."""
    user_prompt = f"""Destination: {destination}
Base area: {base_area}
Transportation: {transport}"""
    return system_prompt, user_prompt
