VIDEO_ANALYSIS_PROMPT = """
Analyze this teaching video carefully. Watch how the teacher speaks, explains and interacts.
Extract and return VALID JSON (no markdown):
{
  "teacher_gender": "male or female",
  "teaching_style": "Detailed teaching approach description",
  "common_phrases": ["Actual phrase 1", "Actual phrase 2", "Actual phrase 3"],
  "tone_and_energy": { "level": 7, "description": "Energy description" },
  "pacing": "slow, moderate, or fast",
  "teaching_methodology": "How they explain concepts",
  "example_types": "Types of examples used",
  "voice_characteristics": "Voice description",
  "unique_traits": ["Trait 1", "Trait 2"],
  "student_interaction_style": "Interaction style",
  "explanation_structure": "Teaching pattern"
}
Return ONLY JSON.
"""

# Used when the video is too large to submit or the media call failed.
METADATA_ANALYSIS_PROMPT = """
You are analyzing a teaching video with these details:

Subject: {subject}
Grade Level: {grade_level}
Title: {title}

Based on this information, generate a realistic teaching style analysis.
Create 8 unique, subject-appropriate phrases this teacher would likely use.

Return VALID JSON (no markdown):
{{
  "teacher_gender": "male or female (guess based on likely demographics for this subject)",
  "teaching_style": "Detailed description of how a {subject} teacher for {grade_level} would teach",
  "common_phrases": [
    "Subject-specific phrase 1",
    "Subject-specific phrase 2",
    "Subject-specific phrase 3",
    "Subject-specific phrase 4",
    "Subject-specific phrase 5",
    "Subject-specific phrase 6",
    "Subject-specific phrase 7",
    "Subject-specific phrase 8"
  ],
  "tone_and_energy": {{
    "level": 6,
    "description": "Appropriate energy for this subject and grade"
  }},
  "pacing": "moderate",
  "teaching_methodology": "How {subject} teachers typically explain concepts",
  "example_types": "Examples appropriate for {subject}",
  "voice_characteristics": "Professional and clear",
  "unique_traits": [
    "Trait specific to {subject} teaching",
    "Student engagement technique"
  ],
  "student_interaction_style": "Interactive and supportive",
  "explanation_structure": "Structured approach for {subject}"
}}

Make the phrases SPECIFIC to {subject}. For example:
- Math: 'Let's solve this step by step'
- Science: 'Let's observe what happens'

Return ONLY JSON.
"""

MATH_KEYWORDS = ("math", "algebra")

# Last resort profiles, picked by whether the subject looks like math
MATH_TEMPLATE_PROFILE = {
    "teacher_gender": "Male",
    "teaching_style": "Logical, step-by-step, and patient. Focuses on breaking down complex problems.",
    "common_phrases": [
        "Let's check our work", "Does that logic follow?", "Step by step",
        "What do we know?", "Plug it back in", "Always show your work",
    ],
    "tone_and_energy": {"level": "6", "description": "Calm and reassuring"},
    "pacing": "Moderate",
    "teaching_methodology": "Problem-first approach.",
    "example_types": "Numerical examples followed by real-world applications.",
    "voice_characteristics": "Clear, mid-range pitch.",
    "unique_traits": ["Uses colored markers", "Pauses for understanding"],
    "student_interaction_style": "Socratic method",
    "explanation_structure": "Definition -> Formula -> Example",
}

GENERAL_TEMPLATE_PROFILE = {
    "teacher_gender": "Female",
    "teaching_style": "Engaging and narrative-driven. Uses storytelling to make content relatable.",
    "common_phrases": [
        "Imagine you are...", "Here is the story", "Connect this to life",
        "How does that feel?", "Let's review", "No wrong answers",
    ],
    "tone_and_energy": {"level": "7", "description": "Warm and friendly"},
    "pacing": "Moderate",
    "teaching_methodology": "Context-first explanation.",
    "example_types": "Relatable daily life scenarios.",
    "voice_characteristics": "Soft and clear.",
    "unique_traits": ["Smiles frequently", "Uses analogies"],
    "student_interaction_style": "Supportive and validating",
    "explanation_structure": "Context -> Concept -> Application",
}
