from marrakesh import Prompt

CITIES = {
    "paris": {"city": "Paris", "temperature": 21, "conditions": "sunny"},
    "london": {"city": "London", "temperature": 14, "conditions": "rainy"},
}


def get_weather(city: str) -> dict:
    """Get the current weather for a city."""
    return CITIES.get(city.lower(), {"city": city, "temperature": None, "conditions": "unknown"})


weather_agent = Prompt(
    name="weather_agent",
    system_prompt=(
        "You are a weather assistant. Use the get_weather tool and answer with the "
        "city name only, exactly as returned by the tool."
    ),
    tools=[get_weather],
)

weather_suite = weather_agent.test(
    cases=[
        {"input": "What's the weather in Paris?", "expect": "Paris"},
        {"input": "Is it raining in London?", "expect": "London"},
        {"input": "Tell me something nice.", "timeout_ms": 20000},
    ],
    executors=[
        {"model": "openai/gpt-4o-mini", "max_steps": 3},
        {"model": "anthropic/claude-3-5-haiku-latest", "max_steps": 3},
    ],
)
