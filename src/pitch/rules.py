"""Static pitch table, one entry per (role, focus) pair."""

from __future__ import annotations

from src.models import Focus, PitchRule, Role

PITCH_RULES: dict[tuple[Role, Focus], PitchRule] = {
    (Role.RECRUITER, Focus.AI): PitchRule(
        text=(
            "I'm a full-stack developer with deep expertise in applied AI and machine "
            "learning. I've built production ML pipelines, implemented LLM integrations, "
            "and automated complex workflows. I focus on practical AI solutions that "
            "deliver real business value, not just proof-of-concepts. My experience spans "
            "from data engineering to model deployment, with a strong emphasis on "
            "scalable, maintainable systems."
        ),
        confidence=0.95,
    ),
    (Role.RECRUITER, Focus.CLOUD): PitchRule(
        text=(
            "I'm a cloud-native developer specializing in AWS serverless architectures. "
            "I design and build scalable, cost-effective solutions using Lambda, API "
            "Gateway, DynamoDB, and modern CI/CD practices. My approach emphasizes "
            "infrastructure as code, observability, and security best practices. I've "
            "helped teams migrate to cloud-first architectures and reduce operational "
            "overhead significantly."
        ),
        confidence=0.98,
    ),
    (Role.RECRUITER, Focus.AUTOMATION): PitchRule(
        text=(
            "I'm passionate about eliminating manual processes through intelligent "
            "automation. I build robust CI/CD pipelines, infrastructure automation, and "
            "workflow orchestration systems. My expertise includes GitHub Actions, AWS "
            "automation, monitoring systems, and creating developer-friendly tooling. I "
            "believe in shipping fast while maintaining high quality through automated "
            "testing and deployment."
        ),
        confidence=0.92,
    ),
    (Role.CTO, Focus.AI): PitchRule(
        text=(
            "I architect and implement AI-driven solutions with a focus on production "
            "readiness and scalability. My experience includes building ML "
            "infrastructure, implementing vector databases, fine-tuning models, and "
            "creating AI-powered features that scale to millions of users. I understand "
            "both the technical complexity and business implications of AI integration, "
            "ensuring solutions are robust, ethical, and maintainable."
        ),
        confidence=0.88,
    ),
    (Role.CTO, Focus.CLOUD): PitchRule(
        text=(
            "I design cloud-native architectures that scale efficiently and "
            "cost-effectively. My expertise spans microservices, serverless computing, "
            "container orchestration, and multi-region deployments. I've led cloud "
            "migrations, implemented disaster recovery strategies, and built systems that "
            "handle massive scale while maintaining 99.9% uptime. I focus on "
            "architectural decisions that support long-term growth and team productivity."
        ),
        confidence=0.95,
    ),
    (Role.CTO, Focus.AUTOMATION): PitchRule(
        text=(
            "I build automation systems that transform how engineering teams operate. "
            "From infrastructure provisioning to deployment pipelines, I create solutions "
            "that reduce manual work, improve reliability, and accelerate development "
            "cycles. My approach includes comprehensive monitoring, automated testing, "
            "and self-healing systems. I've helped teams achieve 10x faster deployment "
            "cycles while improving system reliability."
        ),
        confidence=0.90,
    ),
    (Role.PRODUCT, Focus.AI): PitchRule(
        text=(
            "I translate AI capabilities into user-facing features that deliver real "
            "value. I understand how to integrate AI seamlessly into product experiences, "
            "from recommendation systems to intelligent automation. My focus is on "
            "creating AI features that feel natural and helpful, not gimmicky. I work "
            "closely with product teams to identify high-impact AI opportunities and "
            "implement them with proper user feedback loops."
        ),
        confidence=0.85,
    ),
    (Role.PRODUCT, Focus.CLOUD): PitchRule(
        text=(
            "I build cloud-native products that scale from startup to enterprise. My "
            "experience with modern cloud architectures ensures products can handle rapid "
            "growth while maintaining performance and cost efficiency. I focus on "
            "creating resilient, observable systems that provide excellent user "
            "experiences while being economical to operate and maintain."
        ),
        confidence=0.92,
    ),
    (Role.PRODUCT, Focus.AUTOMATION): PitchRule(
        text=(
            "I create products that automate complex workflows and make users more "
            "productive. My approach combines deep technical knowledge with user empathy "
            "to build automation tools that are both powerful and intuitive. I believe "
            "the best automation products are invisible - they just make everything work "
            "better without users having to think about them."
        ),
        confidence=0.88,
    ),
    (Role.FOUNDER, Focus.AI): PitchRule(
        text=(
            "As someone who understands both the technical and business sides of AI, I "
            "can help you navigate the opportunities and challenges of building an "
            "AI-driven company. My experience spans from prototype to production, and I "
            "understand how to build AI solutions that create sustainable business value "
            "while managing technical debt and scaling challenges."
        ),
        confidence=0.82,
    ),
    (Role.FOUNDER, Focus.CLOUD): PitchRule(
        text=(
            "I bring the technical expertise to help you build a cloud-first company from "
            "the ground up. My experience with scalable architectures and cost "
            "optimization can help you avoid common pitfalls and build a technical "
            "foundation that supports rapid growth. I understand the unique challenges "
            "founders face and can help you make technical decisions that align with "
            "your business goals."
        ),
        confidence=0.90,
    ),
    (Role.FOUNDER, Focus.AUTOMATION): PitchRule(
        text=(
            "I'm passionate about helping founders build companies that leverage "
            "automation to create competitive advantages. My experience in building "
            "automation tools and optimizing processes can help you create a more "
            "efficient, scalable business. I understand that as a founder, your time is "
            "your most valuable resource, and I can help you build systems that multiply "
            "your impact."
        ),
        confidence=0.87,
    ),
    (Role.OTHER, Focus.AI): PitchRule(
        text=(
            "I build practical AI features end to end: data preparation, model "
            "integration, evaluation and deployment. Whether you need an LLM-backed "
            "assistant or a classic ML pipeline, I focus on solutions that are "
            "measurable, maintainable and worth running in production."
        ),
        confidence=0.80,
    ),
    (Role.OTHER, Focus.CLOUD): PitchRule(
        text=(
            "I design and operate cloud systems on AWS with a serverless-first mindset. "
            "I care about infrastructure as code, sensible costs, observability and "
            "security, so the platform stays reliable as usage grows."
        ),
        confidence=0.82,
    ),
    (Role.OTHER, Focus.AUTOMATION): PitchRule(
        text=(
            "I automate the repetitive parts of software delivery and operations: CI/CD "
            "pipelines, provisioning, monitoring and workflow tooling. The goal is "
            "always the same - fewer manual steps, faster feedback and fewer surprises."
        ),
        confidence=0.80,
    ),
}
