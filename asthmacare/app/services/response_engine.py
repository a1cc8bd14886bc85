"""
Keyword response engine for the asthma assistant.

Maps a free-text message to one of a fixed set of canned answers using an
ordered rule table. The first rule whose keywords occur in the message
(case-insensitive substring match) wins; a fallback answer covers the rest.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResponseRule:
    """One row of the rule table."""

    name: str
    keywords: tuple[str, ...]
    response: str

    def matches(self, lowered_message: str) -> bool:
        return any(keyword in lowered_message for keyword in self.keywords)


GREETING_RESPONSE = (
    "Hello! 👋 I'm your AsthmaCare AI assistant. I'm here to help you with asthma-related "
    "questions including symptoms, triggers, medications, air quality, and emergency care. "
    "What would you like to know about managing your asthma today?"
)

SYMPTOMS_RESPONSE = (
    "Common asthma symptoms include:\n\n"
    "• **Wheezing** - a whistling sound when breathing\n"
    "• **Shortness of breath** - especially during activities\n"
    "• **Chest tightness** - feeling like a band around your chest\n"
    "• **Coughing** - often worse at night or early morning\n"
    "• **Difficulty sleeping** due to breathing problems\n\n"
    "If you experience severe symptoms like difficulty speaking, blue lips, or extreme "
    "shortness of breath, seek immediate medical attention! 🚨"
)

TRIGGERS_RESPONSE = (
    "Common asthma triggers include:\n\n"
    "**Environmental:**\n"
    "• Air pollution and smog\n"
    "• Dust mites and allergens\n"
    "• Pet dander\n"
    "• Pollen (seasonal)\n"
    "• Cold air\n\n"
    "**Lifestyle:**\n"
    "• Smoke (cigarettes, cooking)\n"
    "• Strong scents/perfumes\n"
    "• Exercise (exercise-induced asthma)\n"
    "• Stress and strong emotions\n"
    "• Respiratory infections\n\n"
    "💡 **Tip:** Keep an asthma diary to identify your personal triggers!"
)

MEDICATION_RESPONSE = (
    "Asthma medications fall into two main categories:\n\n"
    "**Quick-Relief (Rescue) Inhalers:**\n"
    "• Albuterol (ProAir, Ventolin)\n"
    "• Used during asthma attacks\n"
    "• Should provide relief within 15 minutes\n\n"
    "**Long-Term Control:**\n"
    "• Inhaled corticosteroids (Flovent, Pulmicort)\n"
    "• Combination inhalers (Advair, Symbicort)\n"
    "• Taken daily to prevent symptoms\n\n"
    "⚠️ **Important:** Always follow your doctor's prescribed treatment plan and never stop "
    "medications without consulting them!"
)

EMERGENCY_RESPONSE = (
    "**Seek immediate emergency care if you experience:**\n\n"
    "🚨 **Severe symptoms:**\n"
    "• Cannot speak in full sentences\n"
    "• Lips or fingernails turn blue\n"
    "• Extreme difficulty breathing\n"
    "• Rescue inhaler doesn't help\n"
    "• Peak flow drops below 50% of personal best\n\n"
    "**Emergency Action:**\n"
    "1. Use rescue inhaler immediately\n"
    "2. Call 911 or go to ER\n"
    "3. Take rescue inhaler every 20 minutes\n"
    "4. Stay calm and sit upright\n\n"
    "**Always have an Asthma Action Plan with emergency contacts!**"
)

AIR_QUALITY_RESPONSE = (
    "Air quality significantly impacts asthma:\n\n"
    "**Daily Monitoring:**\n"
    "• Check AQI (Air Quality Index) daily\n"
    "• AQI > 100: Limit outdoor activities\n"
    "• AQI > 150: Stay indoors if possible\n\n"
    "**Indoor Air Quality:**\n"
    "• Use HEPA air purifiers\n"
    "• Keep humidity 30-50%\n"
    "• Regular cleaning to reduce dust\n"
    "• Avoid smoking indoors\n\n"
    "**Seasonal Considerations:**\n"
    "• High pollen days: Keep windows closed\n"
    "• Winter: Warm up gradually before going out\n"
    "• Monsoon: Watch for mold growth\n\n"
    "🌬️ Our air quality checker can help you plan your activities!"
)

EXERCISE_RESPONSE = (
    "Exercise is beneficial for asthma when managed properly:\n\n"
    "**Safe Exercise Tips:**\n"
    "• Use pre-exercise inhaler if prescribed\n"
    "• Warm up for 10-15 minutes gradually\n"
    "• Choose asthma-friendly activities (swimming, walking)\n"
    "• Exercise indoors during high pollution days\n"
    "• Cool down slowly\n\n"
    "**Warning Signs to Stop:**\n"
    "• Wheezing or coughing\n"
    "• Chest tightness\n"
    "• Shortness of breath beyond normal exertion\n"
    "• Dizziness or fatigue\n\n"
    "🏃‍♂️ **Remember:** Exercise-induced asthma is manageable - don't avoid physical activity entirely!"
)

DIET_RESPONSE = (
    "While no diet cures asthma, certain foods may help:\n\n"
    "**Beneficial Foods:**\n"
    "• **Omega-3 rich** - fish, walnuts, flax seeds\n"
    "• **Antioxidants** - berries, leafy greens, tomatoes\n"
    "• **Magnesium** - spinach, almonds, dark chocolate\n"
    "• **Vitamin D** - fortified foods, sunlight exposure\n\n"
    "**Foods to Limit:**\n"
    "• Processed foods high in preservatives\n"
    "• Sulfites (wine, dried fruits)\n"
    "• Foods you're allergic to\n"
    "• Excess salt\n\n"
    "🥗 **Tip:** Maintain a healthy weight as obesity can worsen asthma symptoms."
)

STRESS_RESPONSE = (
    "Stress and emotions can trigger asthma:\n\n"
    "**Stress Management:**\n"
    "• Practice deep breathing exercises\n"
    "• Try meditation or yoga\n"
    "• Regular sleep schedule (7-9 hours)\n"
    "• Stay connected with support system\n\n"
    "**Breathing Techniques:**\n"
    "• **4-7-8 Breathing:** Inhale 4, hold 7, exhale 8\n"
    "• **Diaphragmatic breathing** for relaxation\n"
    "• **Pursed lip breathing** during mild symptoms\n\n"
    "🧘‍♀️ **Remember:** Mental health affects physical health - consider counseling if stress is overwhelming."
)

PEAK_FLOW_RESPONSE = (
    "Peak Flow Meters help monitor asthma control:\n\n"
    "**How to Use:**\n"
    "1. Stand up straight\n"
    "2. Take deep breath\n"
    "3. Seal lips around mouthpiece\n"
    "4. Blow out as hard and fast as possible\n"
    "5. Record best of 3 attempts\n\n"
    "**Zone System:**\n"
    "• **Green (80-100%):** Good control\n"
    "• **Yellow (50-79%):** Caution - follow action plan\n"
    "• **Red (<50%):** Medical alert - seek help\n\n"
    "📊 **Best practice:** Monitor daily and share results with your doctor."
)

TRAVEL_RESPONSE = (
    "Traveling with asthma requires preparation:\n\n"
    "**Before Travel:**\n"
    "• Pack extra medications\n"
    "• Get travel insurance\n"
    "• Research local healthcare\n"
    "• Check air quality at destination\n\n"
    "**Flying Tips:**\n"
    "• Carry inhalers in carry-on\n"
    "• Inform airline of medical needs\n"
    "• Stay hydrated\n"
    "• Move around during long flights\n\n"
    "✈️ **Always bring a letter from your doctor about your medications and medical devices.**"
)

FALLBACK_RESPONSE = """I'm here to help with asthma-related questions! Here are some topics I can assist with:

🔹 **Symptoms & Triggers** - Understanding what causes your asthma
🔹 **Medications** - Information about inhalers and treatments
🔹 **Air Quality** - How pollution affects your breathing
🔹 **Exercise** - Safe physical activity with asthma
🔹 **Emergency Care** - When and how to seek immediate help
🔹 **Lifestyle** - Diet, stress management, and daily care

You can ask me something like:
• "What are common asthma triggers?"
• "How do I use my inhaler properly?"
• "What should I do during an asthma attack?"

**Remember:** This is educational information only. Always consult your healthcare provider for personalized medical advice! 👩‍⚕️"""


# Priority order: first match wins
RESPONSE_RULES: tuple[ResponseRule, ...] = (
    ResponseRule("greeting", ("hello", "hi", "hey"), GREETING_RESPONSE),
    ResponseRule("symptoms", ("symptom", "wheezing", "cough"), SYMPTOMS_RESPONSE),
    ResponseRule("triggers", ("trigger", "cause", "avoid"), TRIGGERS_RESPONSE),
    ResponseRule("medication", ("medication", "inhaler", "treatment"), MEDICATION_RESPONSE),
    ResponseRule("emergency", ("emergency", "attack", "severe"), EMERGENCY_RESPONSE),
    ResponseRule("air_quality", ("air quality", "pollution", "aqi"), AIR_QUALITY_RESPONSE),
    ResponseRule("exercise", ("exercise", "workout", "physical activity"), EXERCISE_RESPONSE),
    ResponseRule("diet", ("diet", "food", "nutrition"), DIET_RESPONSE),
    ResponseRule("stress", ("stress", "anxiety", "breathing technique"), STRESS_RESPONSE),
    ResponseRule("peak_flow", ("peak flow", "monitor", "measure"), PEAK_FLOW_RESPONSE),
    ResponseRule("travel", ("travel", "trip", "vacation"), TRAVEL_RESPONSE),
)

# Canned questions behind the chat window's quick-action buttons
QUICK_ACTIONS: dict[str, str] = {
    "symptoms": "What are the common symptoms of asthma?",
    "triggers": "What are common asthma triggers I should avoid?",
    "emergency": "What should I do during an asthma attack?",
    "airquality": "How does air quality affect my asthma?",
}


def match_rule(message: str, rules: tuple[ResponseRule, ...] = RESPONSE_RULES) -> ResponseRule | None:
    """Return the first rule matching the message, or None for the fallback."""
    lowered = message.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def respond(message: str, history: list[dict[str, Any]] | None = None) -> str:
    """
    Answer a chat message.

    Args:
        message: User's message
        history: Previous exchanges. Accepted for interface compatibility;
            matching only looks at the current message.

    Returns:
        The canned response text of the first matching rule, or the fallback
    """
    rule = match_rule(message)
    return rule.response if rule else FALLBACK_RESPONSE
