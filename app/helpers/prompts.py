EXTRACT_SKILLS_PROMPT = """Analyze the following resume/bio text and extract relevant technical and professional skills.
Return only a JSON array of skill objects with this format:
[{{"name": "skill_name", "proficiency": "Beginner|Intermediate|Advanced|Expert"}}]

Guidelines:
- Extract only actual skills, technologies, tools, programming languages, frameworks
- Avoid soft skills like "teamwork" or "communication"
- Infer proficiency level based on context (years of experience, project complexity, certifications)
- Limit to maximum 15 most relevant skills
- Use exact technology names (e.g., "React.js" not "React")

Text to analyze:
{text}

Return only the JSON array, no additional text:
"""

JOB_RECOMMENDATION_PROMPT = """Analyze this user profile and recommend the most suitable jobs from the available list.

User Profile:
- Skills: {skills}
- Preferred Roles: {roles}
- Preferred Job Types: {job_types}
- Remote Work Preference: {remote_work}
- Location: {location}

Available Jobs:
{jobs}

Return a JSON array of job recommendations with match scores (0-100) and reasons.
"jobIndex" is the number in square brackets in front of each job:
[{{"jobIndex": 0, "score": 85, "reasons": ["Strong skill match", "Preferred location"]}}]

Consider:
- Skill overlap (most important)
- Job type and remote work preferences
- Experience level match
- Location compatibility

Return only the JSON array:
"""

JOB_LINE = """[{index}] {title} at {company}
    Skills Required: {skills}
    Type: {job_type}
    Location: {work_location}
    Experience: {experience_level}"""

SENTIMENT_PROMPT = """Analyze the sentiment of this social media post. Return only a JSON object:
{{"score": number_between_-1_and_1, "label": "positive|neutral|negative"}}

Where score is:
- 1.0 = very positive
- 0.0 = neutral
- -1.0 = very negative

Post content:
{content}

Return only the JSON object:
"""

POST_TAGS_PROMPT = """Generate relevant hashtags/tags for this social media post.
Return only a JSON array of strings: ["tag1", "tag2", "tag3"]

Guidelines:
- Maximum 5 tags
- Use single words or short phrases
- Make them discoverable and relevant
- Include category-specific tags when appropriate
- No # symbol needed

Post content: {content}
Category: {category}

Return only the JSON array:
"""
